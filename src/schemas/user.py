"""User schemas.

``UserUpdate`` is the service-level sparse update. The remaining models are
the gRPC wire messages of ``user.v1.UserService``, encoded with the proto3
JSON mapping (lowerCamelCase names, enums as numbers).
"""

from datetime import datetime
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.enums import UserStatus


class UserUpdate(BaseModel):
    """Sparse user update: only fields that were explicitly set are applied."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    status: UserStatus | None = None

    def changes(self) -> dict[str, Any]:
        """Return the fields that were set to a value."""
        return {
            name: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class WireMessage(BaseModel):
    """Base for wire messages."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserStatusMessage(IntEnum):
    """Wire enum ``user.v1.UserStatus``."""

    USER_STATUS_UNSPECIFIED = 0
    USER_STATUS_ACTIVE = 1
    USER_STATUS_INACTIVE = 2
    USER_STATUS_SUSPENDED = 3


class UserMessage(WireMessage):
    """Public representation of a user. Carries no credential."""

    id: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    status: UserStatusMessage = UserStatusMessage.USER_STATUS_UNSPECIFIED
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CreateUserRequest(WireMessage):
    email: str = ""
    password: str = Field(default="", repr=False)
    first_name: str = ""
    last_name: str = ""
    phone: str = ""


class CreateUserResponse(WireMessage):
    user: UserMessage


class GetUserRequest(WireMessage):
    id: str = ""


class GetUserByEmailRequest(WireMessage):
    email: str = ""


class GetUserResponse(WireMessage):
    user: UserMessage


class UpdateUserRequest(WireMessage):
    """Fields left out of the message are not changed."""

    id: str = ""
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    # Plain int so unknown enum numbers decode instead of failing validation
    status: int | None = None


class UpdateUserResponse(WireMessage):
    user: UserMessage


class DeleteUserRequest(WireMessage):
    id: str = ""


class Empty(WireMessage):
    pass


class ListUsersRequest(WireMessage):
    page: int = 0
    page_size: int = 0
    filter: str = ""


class ListUsersResponse(WireMessage):
    users: list[UserMessage] = Field(default_factory=list)
    total: int = 0
    page: int = 0
    page_size: int = 0
