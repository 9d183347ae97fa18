"""Persistence for users.

Every query here carries an explicit ``User.deleted_at.is_(None)`` predicate.
Soft-deleted rows are invisible to reads, lists, updates and deletes.
"""

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol, TypeVar

from sqlalchemy import func, or_, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.exceptions import (
    AlreadyExistsError,
    InternalError,
    InvalidInputError,
    NotFoundError,
)
from src.models.enums import UserStatus
from src.models.user import User

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UserRepository(Protocol):
    """Storage contract used by the user service."""

    def create(self, user: User) -> User:
        """Insert a new user. Raise AlreadyExistsError on a live duplicate email."""
        ...

    def get_by_id(self, user_id: str) -> User:
        """Return the live user with this id or raise NotFoundError."""
        ...

    def get_by_email(self, email: str) -> User:
        """Return the live user with this email or raise NotFoundError."""
        ...

    def update(self, user: User) -> User:
        """Write every mutable field of ``user``. Raise NotFoundError if no live row matched."""
        ...

    def delete(self, user_id: str) -> None:
        """Soft-delete the user. Raise NotFoundError if no live row matched."""
        ...

    def list(self, page: int, page_size: int, filter: str = "") -> tuple[list[User], int]:
        """Return one page of live users and the total matching count."""
        ...


class SQLUserRepository:
    """SQLAlchemy implementation of UserRepository.

    ``timeout`` is the number of seconds left before the caller's deadline. It is
    fixed to an absolute monotonic deadline here, so every later call sees only
    the time that is actually left.
    """

    def __init__(self, db: Session, timeout: float | None = None):
        self.db = db
        self.deadline = None if timeout is None else time.monotonic() + timeout

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def create(self, user: User) -> User:
        if user is None or not user.email:
            raise InvalidInputError()

        def _create() -> User:
            existing = self._active().filter(User.email == user.email).first()
            if existing is not None:
                raise AlreadyExistsError()

            if not user.status:
                user.status = UserStatus.ACTIVE
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            return user

        return self._run("create user", _create)

    def get_by_id(self, user_id: str) -> User:
        def _get() -> User:
            user = self._active().filter(User.id == user_id).first()
            if user is None:
                raise NotFoundError()
            return user

        return self._run("get user", _get)

    def get_by_email(self, email: str) -> User:
        def _get() -> User:
            user = self._active().filter(User.email == email).first()
            if user is None:
                raise NotFoundError()
            return user

        return self._run("get user by email", _get)

    def update(self, user: User) -> User:
        if user is None or not user.id:
            raise InvalidInputError()

        def _update() -> User:
            rows = (
                self._active()
                .filter(User.id == user.id)
                .update(
                    {
                        User.email: user.email,
                        User.first_name: user.first_name,
                        User.last_name: user.last_name,
                        User.phone: user.phone,
                        User.status: user.status,
                        User.updated_at: func.now(),
                    },
                    synchronize_session=False,
                )
            )
            if rows == 0:
                raise NotFoundError()
            self.db.commit()
            return self._active().filter(User.id == user.id).one()

        return self._run("update user", _update)

    def delete(self, user_id: str) -> None:
        def _delete() -> None:
            now = datetime.now(UTC)
            rows = (
                self._active()
                .filter(User.id == user_id)
                .update(
                    {User.deleted_at: now, User.updated_at: now},
                    synchronize_session=False,
                )
            )
            if rows == 0:
                raise NotFoundError()
            self.db.commit()

        self._run("delete user", _delete)

    def list(self, page: int, page_size: int, filter: str = "") -> tuple[list[User], int]:
        def _list() -> tuple[list[User], int]:
            query = self._active()
            if filter:
                query = query.filter(
                    or_(
                        User.first_name.contains(filter, autoescape=True),
                        User.last_name.contains(filter, autoescape=True),
                        User.email.contains(filter, autoescape=True),
                    )
                )

            total = query.count()
            offset = (page - 1) * page_size
            users = (
                query.order_by(User.created_at, User.id).offset(offset).limit(page_size).all()
            )
            return users, total

        return self._run("list users", _list)

    def _active(self):
        return self.db.query(User).filter(User.deleted_at.is_(None))

    def _apply_timeout(self) -> None:
        remaining = self.remaining()
        if remaining is None:
            return
        if remaining <= 0:
            raise InternalError("deadline exceeded before query")
        if self.db.get_bind().dialect.name == "postgresql":
            # SET does not accept bind parameters; the value is an int.
            millis = max(int(remaining * 1000), 1)
            self.db.execute(text(f"SET LOCAL statement_timeout = {millis}"))

    def _run(self, action: str, operation: Callable[[], T]) -> T:
        """Run ``operation`` under the request deadline, translating storage errors."""
        try:
            self._apply_timeout()
            return operation()
        except IntegrityError as exc:
            self.db.rollback()
            # SQLite says "UNIQUE constraint failed", PostgreSQL "violates unique constraint"
            if "unique" not in str(exc.orig).lower():
                raise InternalError(f"failed to {action}") from exc
            logger.warning(f"Unique constraint violated during {action}: {exc.orig}")
            raise AlreadyExistsError() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise InternalError(f"failed to {action}") from exc
        except (NotFoundError, AlreadyExistsError):
            self.db.rollback()
            raise
