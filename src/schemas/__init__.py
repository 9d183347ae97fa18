"""Pydantic schemas for the user service and its wire messages."""

from src.schemas.user import (
    CreateUserRequest,
    CreateUserResponse,
    DeleteUserRequest,
    Empty,
    GetUserByEmailRequest,
    GetUserRequest,
    GetUserResponse,
    ListUsersRequest,
    ListUsersResponse,
    UpdateUserRequest,
    UpdateUserResponse,
    UserMessage,
    UserStatusMessage,
    UserUpdate,
)

__all__ = [
    "UserUpdate",
    "UserMessage",
    "UserStatusMessage",
    "CreateUserRequest",
    "CreateUserResponse",
    "GetUserRequest",
    "GetUserByEmailRequest",
    "GetUserResponse",
    "UpdateUserRequest",
    "UpdateUserResponse",
    "DeleteUserRequest",
    "Empty",
    "ListUsersRequest",
    "ListUsersResponse",
]
