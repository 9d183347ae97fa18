"""User service: validation, password hashing and orchestration over the repository."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from src.exceptions import InternalError, InvalidEmailError, InvalidInputError, InvalidPasswordError
from src.models.enums import UserStatus
from src.models.user import User
from src.repositories.user_repository import UserRepository
from src.schemas.user import UserUpdate
from src.services.auth import get_password_hash, password_fits, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass
class UserPage:
    """A page of users with the pagination values actually used."""

    users: list[User]
    total: int
    page: int
    page_size: int


class UserService:
    """Service for user-related operations."""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    def create_user(
        self,
        email: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
        phone: str = "",
    ) -> User:
        """Create a user with a bcrypt-hashed password.

        Raises:
            InvalidEmailError: email is empty.
            InvalidPasswordError: password is empty, shorter than 8 characters
                or longer than the 72 bytes bcrypt can hash.
            AlreadyExistsError: a live user already has this email.
        """
        logger.info(f"Creating new user: {email}", extra={"email": email})

        if not email:
            raise InvalidEmailError()
        if not password or len(password) < MIN_PASSWORD_LENGTH or not password_fits(password):
            raise InvalidPasswordError()

        try:
            password_hash = get_password_hash(password)
        except ValueError as e:
            logger.error(f"Failed to hash password: {e}", extra={"email": email})
            raise InternalError("failed to hash password") from e

        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first_name or "",
            last_name=last_name or "",
            phone=phone or "",
            status=UserStatus.ACTIVE,
        )

        try:
            user = self.repository.create(user)
        except Exception as e:
            logger.error(f"Failed to create user {email}: {e}", extra={"email": email})
            raise

        logger.info(
            f"User created successfully: {user.id} ({email})",
            extra={"user_id": user.id, "email": email},
        )
        return user

    def get_user(self, user_id: str) -> User:
        logger.debug(f"Getting user {user_id}", extra={"user_id": user_id})
        try:
            return self.repository.get_by_id(user_id)
        except Exception as e:
            logger.error(f"Failed to get user {user_id}: {e}", extra={"user_id": user_id})
            raise

    def get_user_by_email(self, email: str) -> User:
        logger.debug(f"Getting user by email {email}", extra={"email": email})
        try:
            return self.repository.get_by_email(email)
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}", extra={"email": email})
            raise

    def update_user(self, user_id: str, updates: UserUpdate | Mapping[str, Any]) -> User:
        """Apply a sparse update.

        Only fields set on ``updates`` change. A mapping is accepted too; its
        unknown keys are ignored. The password cannot be changed here.
        """
        logger.info(f"Updating user {user_id}", extra={"user_id": user_id})

        if not isinstance(updates, UserUpdate):
            try:
                updates = UserUpdate.model_validate(dict(updates))
            except ValidationError as e:
                raise InvalidInputError(f"invalid user update: {e.error_count()} error(s)") from e

        user = self.repository.get_by_id(user_id)
        changes = updates.changes()
        for field, value in changes.items():
            setattr(user, field, value)

        try:
            user = self.repository.update(user)
        except Exception as e:
            logger.error(f"Failed to update user {user_id}: {e}", extra={"user_id": user_id})
            raise

        logger.info(
            f"User updated successfully: {user_id}",
            extra={"user_id": user_id, "fields": sorted(changes)},
        )
        return user

    def delete_user(self, user_id: str) -> None:
        logger.info(f"Deleting user {user_id}", extra={"user_id": user_id})
        try:
            self.repository.delete(user_id)
        except Exception as e:
            logger.error(f"Failed to delete user {user_id}: {e}", extra={"user_id": user_id})
            raise
        logger.info(f"User deleted successfully: {user_id}", extra={"user_id": user_id})

    def list_users(self, page: int, page_size: int, filter: str = "") -> UserPage:
        """List live users; page is raised to 1, page_size outside 1..100 becomes 10."""
        logger.debug(
            f"Listing users: page={page} page_size={page_size} filter={filter!r}",
            extra={"page": page, "page_size": page_size, "filter": filter},
        )

        if page < 1:
            page = 1
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            page_size = DEFAULT_PAGE_SIZE

        try:
            users, total = self.repository.list(page, page_size, filter)
        except Exception as e:
            logger.error(f"Failed to list users: {e}", extra={"page": page, "page_size": page_size})
            raise

        return UserPage(users=users, total=total, page=page, page_size=page_size)

    def validate_credential(self, email: str, password: str) -> User:
        """Return the user if ``password`` matches the stored hash.

        Raises:
            NotFoundError: no live user has this email.
            InvalidPasswordError: the password does not match.
        """
        logger.debug(f"Validating credentials for {email}", extra={"email": email})

        user = self.repository.get_by_email(email)

        # bcrypt would compare only the first 72 bytes of a longer candidate
        if not password_fits(password):
            logger.warning(f"Oversized password attempt for {email}", extra={"email": email})
            raise InvalidPasswordError()

        try:
            valid = verify_password(password, user.password_hash)
        except ValueError as e:
            logger.error(
                f"Stored password hash for {user.id} is unusable: {e}",
                extra={"user_id": user.id},
            )
            raise InternalError("failed to verify password") from e

        if not valid:
            logger.warning(f"Invalid password attempt for {email}", extra={"email": email})
            raise InvalidPasswordError()
        return user
