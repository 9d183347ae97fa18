"""Registration and client stub for ``user.v1.UserService``.

Messages travel as proto3-JSON encoded pydantic models instead of generated
protobuf classes; method paths match ``proto/user/v1/user.proto``.
"""

from collections.abc import Callable

import grpc
from pydantic import BaseModel

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
)

SERVICE_NAME = "user.v1.UserService"

# method name -> (request type, response type)
METHODS: dict[str, tuple[type[BaseModel], type[BaseModel]]] = {
    "CreateUser": (CreateUserRequest, CreateUserResponse),
    "GetUser": (GetUserRequest, GetUserResponse),
    "GetUserByEmail": (GetUserByEmailRequest, GetUserResponse),
    "UpdateUser": (UpdateUserRequest, UpdateUserResponse),
    "DeleteUser": (DeleteUserRequest, Empty),
    "ListUsers": (ListUsersRequest, ListUsersResponse),
}


def serialize(message: BaseModel) -> bytes:
    """Encode a message; unset optional fields are left out."""
    return message.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


def deserializer(model: type[BaseModel]) -> Callable[[bytes], BaseModel]:
    """Build a decoder for ``model``; an empty payload is the default message."""

    def _deserialize(data: bytes) -> BaseModel:
        return model.model_validate_json(data or b"{}")

    return _deserialize


def add_user_service_to_server(servicer, server: grpc.Server) -> None:
    """Register ``servicer``'s RPC methods on ``server``."""
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, name),
            request_deserializer=deserializer(request_type),
            response_serializer=serialize,
        )
        for name, (request_type, _) in METHODS.items()
    }
    server.add_generic_rpc_handlers((grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),))


class UserServiceStub:
    """Client for ``user.v1.UserService``; one callable attribute per RPC."""

    def __init__(self, channel: grpc.Channel):
        for name, (_, response_type) in METHODS.items():
            setattr(
                self,
                name,
                channel.unary_unary(
                    f"/{SERVICE_NAME}/{name}",
                    request_serializer=serialize,
                    response_deserializer=deserializer(response_type),
                ),
            )
