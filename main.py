"""Command-line interface for the userbase service."""

from __future__ import annotations
import argparse
import logging
import sys
from dataclasses import replace
from getpass import getpass
from pathlib import Path
from typing import Sequence

from userbase.application import build_database, build_service
from userbase.config import Settings, load_settings
from userbase.errors import UserbaseError
from userbase.hashing import password_fits
from userbase.schemas import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH, CreateUserRequest

logger = logging.getLogger("userbase.main")

_KNOWN_COMMANDS = {"serve", "init-db", "create-user"}


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Userbase user management service")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: USERBASE_CONFIG or ./config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Create the users table and indexes")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: server.host)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default: server.port)")

    create_parser = subparsers.add_parser("create-user", help="Create a user from the terminal")
    create_parser.add_argument("username", help="Unique login name")
    create_parser.add_argument("email", help="Unique email address")

    args_list = list(argv) if argv is not None else sys.argv[1:]

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        # Global options must precede the subcommand.
        index = 0
        if first == "--config" and len(args_list) > 1:
            index = 2
        elif first.startswith("--config="):
            index = 1
        remaining = args_list[index:]
        if not remaining or remaining[0] not in _KNOWN_COMMANDS:
            if not any(flag in remaining for flag in ("-h", "--help")):
                args_list = [*args_list[:index], "serve", *remaining]

    return parser.parse_args(args_list)


def _load(args: argparse.Namespace) -> Settings:
    config_path = Path(args.config).expanduser() if args.config else None
    return load_settings(config_path)


def _serve(settings: Settings, *, host: str | None, port: int | None) -> None:
    from userbase.application import create_application
    import uvicorn

    server = replace(settings.server, host=host or settings.server.host, port=port or settings.server.port)
    logger.info("Starting user API on http://%s", server.address)

    app = create_application(settings=settings)
    uvicorn.run(app, host=server.host, port=server.port, log_level=settings.app.log_level)


def _prompt_for_password() -> str | None:
    for _ in range(3):
        password = getpass(f"Password ({PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters): ")
        too_long = len(password) > PASSWORD_MAX_LENGTH or not password_fits(password)
        if len(password) < PASSWORD_MIN_LENGTH or too_long:
            print("Password length is out of range. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def _create_user(settings: Settings, *, username: str, email: str) -> int:
    password = _prompt_for_password()
    if password is None:
        print("Aborted creating user.", file=sys.stderr)
        return 1

    try:
        request = CreateUserRequest(username=username, email=email, password=password)
    except ValueError as exc:
        print(f"Invalid user details: {exc}", file=sys.stderr)
        return 1

    try:
        service = build_service(build_database(settings))
        user = service.create_user(request)
    except UserbaseError as exc:
        print(f"Failed to create user: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.username} <{user.email}>")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    settings = _load(args)

    logging.basicConfig(
        level=getattr(logging, settings.app.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.command == "serve":
        _serve(settings, host=args.host, port=args.port)
    elif args.command == "init-db":
        database = build_database(settings)
        logger.info("Database initialised at %s", database.path)
        print("Database initialisation complete.")
    elif args.command == "create-user":
        return _create_user(settings, username=args.username, email=args.email)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
