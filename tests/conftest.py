"""Pytest configuration and fixtures."""

import os
import uuid
from contextlib import contextmanager
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from src import models  # noqa: F401
from src.api.user_handler import UserServicer
from src.database import Base, build_engine, get_db
from src.exceptions import AlreadyExistsError, InvalidInputError, NotFoundError
from src.main import app
from src.models.enums import UserStatus
from src.models.user import User
from src.repositories.user_repository import SQLUserRepository
from src.services.user_service import UserService

# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/users", "/users_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = build_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def repository(db):
    """SQL repository bound to the test session."""
    return SQLUserRepository(db)


@pytest.fixture
def service_scope(db):
    """Service scope for the gRPC layer that reuses the test session."""

    @contextmanager
    def scope(timeout=None):
        yield UserService(SQLUserRepository(db, timeout=timeout))

    return scope


@pytest.fixture
def servicer(service_scope):
    return UserServicer(service_scope)


def make_user(email: str = "jane@example.com", **fields) -> User:
    """Build an unsaved user with a placeholder password hash."""
    fields.setdefault("password_hash", "not-a-real-hash")
    fields.setdefault("first_name", "")
    fields.setdefault("last_name", "")
    fields.setdefault("phone", "")
    return User(email=email, **fields)


@pytest.fixture
def user_factory():
    return make_user


class InMemoryUserRepository:
    """Dict-backed UserRepository with the same error contract as the SQL one."""

    def __init__(self):
        self.users: dict[str, User] = {}

    def _active(self) -> list[User]:
        return [user for user in self.users.values() if not user.is_deleted]

    def create(self, user: User) -> User:
        if user is None or not user.email:
            raise InvalidInputError()
        if any(existing.email == user.email for existing in self._active()):
            raise AlreadyExistsError()

        now = datetime.now(UTC)
        user.id = user.id or str(uuid.uuid4())
        user.status = user.status or UserStatus.ACTIVE
        user.created_at = now
        user.updated_at = now
        self.users[user.id] = user
        return user

    def get_by_id(self, user_id: str) -> User:
        user = self.users.get(user_id)
        if user is None or user.is_deleted:
            raise NotFoundError()
        return user

    def get_by_email(self, email: str) -> User:
        for user in self._active():
            if user.email == email:
                return user
        raise NotFoundError()

    def update(self, user: User) -> User:
        if user is None or not user.id:
            raise InvalidInputError()
        stored = self.get_by_id(user.id)
        for field in ("email", "first_name", "last_name", "phone", "status"):
            setattr(stored, field, getattr(user, field))
        stored.updated_at = datetime.now(UTC)
        return stored

    def delete(self, user_id: str) -> None:
        self.get_by_id(user_id).mark_deleted()

    def list(self, page: int, page_size: int, filter: str = "") -> tuple[list[User], int]:
        users = [
            user
            for user in self._active()
            if not filter
            or filter in user.first_name
            or filter in user.last_name
            or filter in user.email
        ]
        users.sort(key=lambda user: (user.created_at, user.id))
        offset = (page - 1) * page_size
        return users[offset : offset + page_size], len(users)


@pytest.fixture
def fake_repository():
    return InMemoryUserRepository()


class AbortError(Exception):
    """Raised by FakeServicerContext.abort, as grpc does."""

    def __init__(self, code, details):
        super().__init__(details)
        self.code = code
        self.details = details


class FakeServicerContext:
    """Minimal grpc.ServicerContext for calling handlers directly."""

    def __init__(self, time_remaining=None):
        self._time_remaining = time_remaining
        self._code = None
        self._details = None

    def time_remaining(self):
        return self._time_remaining

    def abort(self, code, details):
        self._code = code
        self._details = details
        raise AbortError(code, details)

    def code(self):
        return self._code

    def details(self):
        return self._details


@pytest.fixture
def grpc_context():
    return FakeServicerContext()
