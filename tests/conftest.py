from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fakes import InMemoryUserRepository  # noqa: E402
from userbase.api import create_app  # noqa: E402
from userbase.database import Database  # noqa: E402
from userbase.hashing import PasswordHasher  # noqa: E402
from userbase.repository import SQLiteUserRepository, UserRepository  # noqa: E402
from userbase.service import UserService  # noqa: E402

# bcrypt's minimum cost keeps the suite fast; production uses DEFAULT_ROUNDS.
TEST_ROUNDS = 4


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "userbase.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture(params=["sqlite", "memory"])
def repository(request: pytest.FixtureRequest, tmp_path: Path) -> UserRepository:
    if request.param == "memory":
        return InMemoryUserRepository()
    db = Database(tmp_path / "repository.sqlite3")
    db.initialize()
    return SQLiteUserRepository(db)


@pytest.fixture()
def memory_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture()
def service(memory_repository: InMemoryUserRepository, hasher: PasswordHasher) -> UserService:
    return UserService(memory_repository, hasher)


@pytest.fixture()
def sqlite_service(database: Database, hasher: PasswordHasher) -> UserService:
    return UserService(SQLiteUserRepository(database), hasher)


@pytest.fixture()
def client(sqlite_service: UserService) -> Iterator[TestClient]:
    app = create_app(service=sqlite_service)
    with TestClient(app) as test_client:
        yield test_client
