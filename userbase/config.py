"""Configuration management for the user service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import yaml

from .database import resolve_database_path

CONFIG_ENV_VAR = "USERBASE_CONFIG"
_SEARCH_DIRECTORIES = (Path("."), Path("config"), Path("configuration"))
_CONFIG_FILENAME = "config.yaml"
_LOG_LEVELS = {"debug", "info", "warning", "error", "critical"}


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_bool(key: str, value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off", ""}:
            return False
    raise ValueError(f"Invalid boolean for '{key}': {value!r}")


def _parse_port(key: str, value: object) -> int:
    try:
        port = int(str(value))
    except ValueError as exc:
        raise ValueError(f"Invalid port for '{key}': {value!r}") from exc
    if not 0 < port < 65536:
        raise ValueError(f"Port for '{key}' must be between 1 and 65535, got {port}")
    return port


def _parse_origins(value: object) -> Tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(item) for item in value or []]
    return tuple(item.strip() for item in items if item.strip())


@dataclass(frozen=True)
class ServerConfig:
    """Bind address for the HTTP API."""

    host: str = "localhost"
    port: int = 8080

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class DatabaseConfig:
    """Location of the SQLite database file."""

    path: Path = field(default_factory=lambda: resolve_database_path(None))


@dataclass(frozen=True)
class AppConfig:
    """Runtime behaviour of the application."""

    environment: str = "development"
    log_level: str = "info"
    debug: bool = False
    cors_origins: Tuple[str, ...] = ("*",)
    docs_enabled: bool = True


@dataclass(frozen=True)
class Settings:
    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    app: AppConfig = field(default_factory=AppConfig)

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw configuration data.

        Relative database paths are resolved against ``base_path`` (the
        directory holding the configuration file) when one is given.
        """

        server_raw = _section(data, "server")
        database_raw = _section(data, "database")
        app_raw = _section(data, "app")

        server = ServerConfig()
        if "host" in server_raw:
            server = replace(server, host=str(server_raw["host"]))
        if "port" in server_raw:
            server = replace(server, port=_parse_port("server.port", server_raw["port"]))

        database = DatabaseConfig()
        if database_raw.get("path"):
            raw_path = Path(str(database_raw["path"])).expanduser()
            if not raw_path.is_absolute() and base_path is not None:
                raw_path = base_path / raw_path
            database = DatabaseConfig(path=raw_path.resolve(strict=False))

        app = AppConfig()
        if "environment" in app_raw:
            app = replace(app, environment=str(app_raw["environment"]))
        if "log_level" in app_raw:
            app = replace(app, log_level=_parse_log_level(app_raw["log_level"]))
        if "debug" in app_raw:
            app = replace(app, debug=_parse_bool("app.debug", app_raw["debug"]))
        if "cors_origins" in app_raw:
            app = replace(app, cors_origins=_parse_origins(app_raw["cors_origins"]))
        if "docs_enabled" in app_raw:
            app = replace(app, docs_enabled=_parse_bool("app.docs_enabled", app_raw["docs_enabled"]))

        return Settings(server=server, database=database, app=app)

    def with_env_overrides(self, environ: Mapping[str, str]) -> "Settings":
        """Return a copy with values taken from ``SECTION_KEY`` environment variables."""

        server = self.server
        if environ.get("SERVER_HOST"):
            server = replace(server, host=environ["SERVER_HOST"])
        if environ.get("SERVER_PORT"):
            server = replace(server, port=_parse_port("SERVER_PORT", environ["SERVER_PORT"]))

        database = self.database
        if environ.get("DATABASE_PATH"):
            database = DatabaseConfig(path=resolve_database_path(environ["DATABASE_PATH"]))

        app = self.app
        if environ.get("APP_ENVIRONMENT"):
            app = replace(app, environment=environ["APP_ENVIRONMENT"])
        if environ.get("APP_LOG_LEVEL"):
            app = replace(app, log_level=_parse_log_level(environ["APP_LOG_LEVEL"]))
        if "APP_DEBUG" in environ:
            app = replace(app, debug=_env_flag(environ["APP_DEBUG"]))
        if environ.get("APP_CORS_ORIGINS"):
            app = replace(app, cors_origins=_parse_origins(environ["APP_CORS_ORIGINS"]))
        if "APP_DOCS_ENABLED" in environ:
            app = replace(app, docs_enabled=_env_flag(environ["APP_DOCS_ENABLED"], True))

        return Settings(server=server, database=database, app=app)


def _section(data: Mapping[str, object], name: str) -> Dict[str, object]:
    value = data.get(name) or {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Configuration section '{name}' must be a mapping")
    return dict(value)


def _parse_log_level(value: object) -> str:
    level = str(value).strip().lower()
    if level == "warn":
        level = "warning"
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level: {value!r}")
    return level


def resolve_config_path(env_value: Optional[str]) -> Optional[Path]:
    """Resolve the configuration file, or ``None`` when no file exists."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    for directory in _SEARCH_DIRECTORIES:
        candidate = directory / _CONFIG_FILENAME
        if candidate.is_file():
            return candidate.resolve(strict=False)
    return None


def load_settings(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from YAML, then apply environment overrides.

    A missing configuration file is not an error: defaults are used.
    """

    if environ is None:
        environ = os.environ
    if config_path is None:
        config_path = resolve_config_path(environ.get(CONFIG_ENV_VAR))

    if config_path is not None and config_path.is_file():
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        settings = Settings.from_dict(raw, base_path=config_path.parent)
    else:
        settings = Settings()

    return settings.with_env_overrides(environ)


__all__ = [
    "AppConfig",
    "CONFIG_ENV_VAR",
    "DatabaseConfig",
    "ServerConfig",
    "Settings",
    "load_settings",
    "resolve_config_path",
]
