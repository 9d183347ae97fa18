"""Per-request wiring of session, repository and service."""

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager

from sqlalchemy.orm import Session, sessionmaker

from src.database import SessionLocal
from src.repositories.user_repository import SQLUserRepository
from src.services.user_service import UserService

# Called with the seconds left before the RPC deadline (None when unbounded).
ServiceScope = Callable[[float | None], AbstractContextManager[UserService]]


@contextmanager
def user_service_scope(
    timeout: float | None = None,
    session_factory: sessionmaker[Session] = SessionLocal,
) -> Iterator[UserService]:
    """Get user service with a fresh session, closed when the scope exits."""
    db = session_factory()
    try:
        yield UserService(SQLUserRepository(db, timeout=timeout))
    finally:
        db.close()
