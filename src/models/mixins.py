"""Mixins for SQLAlchemy models."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, func


class AuditColumnsMixin:
    """Creation, modification and soft-deletion times.

    ``updated_at`` is only bumped by ORM flushes; bulk updates must set it
    themselves. Nothing filters on ``deleted_at`` implicitly.
    """

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def mark_deleted(self, when: datetime | None = None) -> None:
        """Stamp ``deleted_at`` and ``updated_at`` with the same instant."""
        when = when or datetime.now(UTC)
        self.deleted_at = when
        self.updated_at = when
