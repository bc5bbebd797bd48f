"""FastAPI application exposing the user management endpoints."""
from __future__ import annotations

import logging
import time
from typing import Dict, Optional, Sequence

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import (
    ConstraintViolationError,
    PasswordHashingError,
    StorageError,
    UserNotFoundError,
)
from .schemas import (
    CreateUserRequest,
    UpdateUserRequest,
    UserListResponse,
    UserProfileResponse,
    UserResponse,
)
from .service import UserService

logger = logging.getLogger("userbase.api")

API_PREFIX = "/api/v1"
DEFAULT_LIMIT = 10
DEFAULT_OFFSET = 0
_MAX_USER_ID = 2**32 - 1


def _is_ascii_digits(value: str) -> bool:
    return value.isascii() and value.isdigit()


def parse_user_id(raw: str) -> int:
    """Parse a path identifier as an unsigned 32-bit integer or fail with 400."""

    if not _is_ascii_digits(raw) or int(raw) > _MAX_USER_ID:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user ID")
    return int(raw)


def parse_page_param(raw: Optional[str], default: int, *, allow_zero: bool) -> int:
    """Return the integer value of a pagination parameter, or ``default``.

    Missing, non-numeric and out-of-range values fall back to the default
    instead of being rejected.
    """

    if raw is None:
        return default
    digits = raw[1:] if raw.startswith("-") else raw
    if not _is_ascii_digits(digits):
        return default
    value = int(raw)
    if value < 0 or (value == 0 and not allow_zero):
        return default
    return value


def create_app(
    *,
    service: UserService,
    title: str = "Userbase API",
    cors_origins: Sequence[str] = ("*",),
    docs_enabled: bool = True,
    debug: bool = False,
) -> FastAPI:
    app = FastAPI(
        title=title,
        debug=debug,
        description="User management REST service",
        version="1.0.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.user_service = service

    def get_service() -> UserService:
        return service

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    @app.get("/health")
    def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    router = APIRouter(prefix="/users", tags=["users"])

    @router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
    def create_user(
        payload: CreateUserRequest,
        users: UserService = Depends(get_service),
    ) -> UserResponse:
        return users.create_user(payload)

    @router.get("", response_model=UserListResponse)
    def list_users(
        limit: Optional[str] = None,
        offset: Optional[str] = None,
        users: UserService = Depends(get_service),
    ) -> UserListResponse:
        page_limit = parse_page_param(limit, DEFAULT_LIMIT, allow_zero=False)
        page_offset = parse_page_param(offset, DEFAULT_OFFSET, allow_zero=True)
        return UserListResponse(
            users=users.list_users(page_limit, page_offset),
            limit=page_limit,
            offset=page_offset,
        )

    @router.get("/{user_id}", response_model=UserResponse)
    def read_user(user_id: str, users: UserService = Depends(get_service)) -> UserResponse:
        return users.get_user(parse_user_id(user_id))

    @router.put("/{user_id}", response_model=UserResponse)
    def update_user(
        user_id: str,
        payload: UpdateUserRequest,
        users: UserService = Depends(get_service),
    ) -> UserResponse:
        return users.update_user(parse_user_id(user_id), payload)

    @router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_user(user_id: str, users: UserService = Depends(get_service)) -> Response:
        users.delete_user(parse_user_id(user_id))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.get("/{user_id}/profile", response_model=UserProfileResponse)
    def read_user_profile(user_id: str, users: UserService = Depends(get_service)) -> UserProfileResponse:
        return UserProfileResponse(profile=users.get_user(parse_user_id(user_id)))

    @router.put("/{user_id}/profile", response_model=UserProfileResponse)
    def update_user_profile(
        user_id: str,
        payload: UpdateUserRequest,
        users: UserService = Depends(get_service),
    ) -> UserProfileResponse:
        return UserProfileResponse(profile=users.update_user(parse_user_id(user_id), payload))

    app.include_router(router, prefix=API_PREFIX)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(UserNotFoundError)
    async def handle_not_found(_: Request, exc: UserNotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "User not found"})

    @app.exception_handler(ConstraintViolationError)
    async def handle_conflict(_: Request, exc: ConstraintViolationError):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.exception_handler(PasswordHashingError)
    async def handle_hashing_error(request: Request, exc: PasswordHashingError):
        logger.error("Password hashing failed for %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Failed to process password"},
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error("Storage failure for %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal storage error"},
        )

    return app


__all__ = ["API_PREFIX", "create_app", "parse_page_param", "parse_user_id"]
