from pathlib import Path
from unittest import mock

import main
from main import _parse_args
from userbase.database import Database
from userbase.errors import PasswordHashingError
from userbase.repository import SQLiteUserRepository


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_config_option_precedes_subcommand() -> None:
    args = _parse_args(["--config", "custom.yaml", "init-db"])
    assert args.command == "init-db"
    assert args.config == "custom.yaml"

    args = _parse_args(["--config", "custom.yaml"])
    assert args.command == "serve"


def test_create_user_subcommand() -> None:
    args = _parse_args(["create-user", "alice", "alice@example.com"])
    assert args.command == "create-user"
    assert args.username == "alice"
    assert args.email == "alice@example.com"


def test_init_db_creates_schema(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "cli.sqlite3"
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    monkeypatch.delenv("USERBASE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    assert main.main(["init-db"]) == 0
    assert SQLiteUserRepository(Database(db_path)).count() == 0


def test_create_user_command(tmp_path: Path, monkeypatch, capsys) -> None:
    db_path = tmp_path / "cli.sqlite3"
    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    monkeypatch.delenv("USERBASE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    with mock.patch.object(main, "getpass", return_value="password123"):
        assert main.main(["create-user", "alice", "alice@example.com"]) == 0
        assert main.main(["create-user", "bob", "alice@example.com"]) == 1

    captured = capsys.readouterr()
    assert "Created user #1: alice <alice@example.com>" in captured.out
    assert "email already exists" in captured.err
    assert SQLiteUserRepository(Database(db_path)).get_by_username("alice").id == 1


def test_create_user_rejects_invalid_details(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.sqlite3"))
    monkeypatch.delenv("USERBASE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    with mock.patch.object(main, "getpass", return_value="password123"):
        assert main.main(["create-user", "ab", "alice@example.com"]) == 1


def test_serve_passes_settings_to_uvicorn(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.sqlite3"))
    monkeypatch.setenv("SERVER_PORT", "9100")
    monkeypatch.delenv("USERBASE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    with mock.patch("uvicorn.run") as run:
        assert main.main(["--host", "127.0.0.1"]) == 0

    _, kwargs = run.call_args
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9100
    assert kwargs["log_level"] == "info"


def test_create_user_reports_storage_failure(tmp_path: Path, monkeypatch, capsys) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setenv("DATABASE_PATH", str(blocker / "cli.sqlite3"))
    monkeypatch.delenv("USERBASE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    with mock.patch.object(main, "getpass", return_value="password123"):
        assert main.main(["create-user", "alice", "alice@example.com"]) == 1

    assert "Failed to create user" in capsys.readouterr().err


def test_create_user_reports_hashing_failure(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.sqlite3"))
    monkeypatch.delenv("USERBASE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    with mock.patch.object(main, "getpass", return_value="password123"), mock.patch(
        "userbase.hashing.PasswordHasher.hash", side_effect=PasswordHashingError("Failed to hash password")
    ):
        assert main.main(["create-user", "alice", "alice@example.com"]) == 1

    assert "Failed to hash password" in capsys.readouterr().err


def test_prompt_rejects_password_over_72_bytes() -> None:
    with mock.patch.object(main, "getpass", return_value="é" * 36 + "correct"):
        assert main._prompt_for_password() is None


def test_serve_passes_debug_to_application(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "cli.sqlite3"))
    monkeypatch.setenv("APP_DEBUG", "true")
    monkeypatch.delenv("USERBASE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    with mock.patch("uvicorn.run") as run:
        assert main.main(["serve"]) == 0

    app = run.call_args[0][0]
    assert app.debug is True
