"""User model."""

import uuid

from sqlalchemy import Column, Enum, Index, String, text

from src.database import Base
from src.models.enums import UserStatus
from src.models.mixins import AuditColumnsMixin


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base, AuditColumnsMixin):
    """User account. ``password_hash`` must never leave the service."""

    __tablename__ = "users"
    # Email is unique among live rows only; soft-deleted rows free the address.
    __table_args__ = (
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id = Column(String(36), primary_key=True, default=_new_user_id)
    email = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    phone = Column(String(20), nullable=False, default="")
    status = Column(
        Enum(
            UserStatus,
            name="userstatus",
            native_enum=False,
            length=20,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=UserStatus.ACTIVE,
        server_default=UserStatus.ACTIVE.value,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} status={self.status}>"
