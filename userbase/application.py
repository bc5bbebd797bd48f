"""Application factory that wires settings, storage, hashing and the API."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from .api import create_app as create_api_app
from .config import Settings, load_settings
from .database import Database
from .hashing import PasswordHasher
from .repository import SQLiteUserRepository
from .service import UserService

logger = logging.getLogger("userbase.application")


def build_database(settings: Settings) -> Database:
    database = Database(settings.database.path)
    database.initialize()
    return database


def build_service(
    database: Database,
    *,
    hasher: Optional[PasswordHasher] = None,
) -> UserService:
    """Compose the user service from its collaborators."""

    repository = SQLiteUserRepository(database)
    return UserService(repository, hasher or PasswordHasher())


def create_application(
    *,
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    hasher: Optional[PasswordHasher] = None,
) -> FastAPI:
    """Create the ASGI application.

    Suitable as a uvicorn factory: ``uvicorn --factory
    userbase.application:create_application``.
    """

    if settings is None:
        settings = load_settings()
    if database is None:
        database = build_database(settings)

    service = build_service(database, hasher=hasher)
    app = create_api_app(
        service=service,
        cors_origins=settings.app.cors_origins,
        docs_enabled=settings.app.docs_enabled,
        debug=settings.app.debug,
    )
    app.state.settings = settings
    app.state.database = database

    logger.info(
        "Application ready (environment=%s, database=%s)",
        settings.app.environment,
        database.path,
    )
    return app


__all__ = ["build_database", "build_service", "create_application"]
