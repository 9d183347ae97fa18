"""SQLAlchemy models."""

from src.models.enums import UserStatus
from src.models.user import User

__all__ = [
    "User",
    "UserStatus",
]
