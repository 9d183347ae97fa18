"""gRPC handlers for ``user.v1.UserService``."""

import logging
from typing import NoReturn

import grpc

from src.api.dependencies import ServiceScope, user_service_scope
from src.exceptions import AlreadyExistsError, NotFoundError
from src.models.enums import UserStatus
from src.models.user import User
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

logger = logging.getLogger(__name__)

STATUS_TO_WIRE = {
    UserStatus.ACTIVE: UserStatusMessage.USER_STATUS_ACTIVE,
    UserStatus.INACTIVE: UserStatusMessage.USER_STATUS_INACTIVE,
    UserStatus.SUSPENDED: UserStatusMessage.USER_STATUS_SUSPENDED,
}
WIRE_TO_STATUS = {wire: status for status, wire in STATUS_TO_WIRE.items()}


def status_to_wire(status: UserStatus | None) -> UserStatusMessage:
    return STATUS_TO_WIRE.get(status, UserStatusMessage.USER_STATUS_UNSPECIFIED)


def status_from_wire(value: int) -> UserStatus:
    """Unspecified and unknown wire values decode as active."""
    return WIRE_TO_STATUS.get(value, UserStatus.ACTIVE)


def user_to_message(user: User) -> UserMessage:
    return UserMessage(
        id=user.id,
        email=user.email,
        first_name=user.first_name or "",
        last_name=user.last_name or "",
        phone=user.phone or "",
        status=status_to_wire(user.status),
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserServicer:
    """Translates RPCs into UserService calls and errors into status codes."""

    def __init__(self, service_scope: ServiceScope = user_service_scope):
        self.service_scope = service_scope

    def CreateUser(
        self, request: CreateUserRequest, context: grpc.ServicerContext
    ) -> CreateUserResponse:
        logger.info(f"CreateUser request received: {request.email}", extra={"email": request.email})
        with self.service_scope(context.time_remaining()) as service:
            try:
                user = service.create_user(
                    request.email,
                    request.password,
                    request.first_name,
                    request.last_name,
                    request.phone,
                )
            except Exception as e:
                self._abort(context, e, "failed to create user")
            return CreateUserResponse(user=user_to_message(user))

    def GetUser(self, request: GetUserRequest, context: grpc.ServicerContext) -> GetUserResponse:
        logger.debug(f"GetUser request received: {request.id}", extra={"user_id": request.id})
        with self.service_scope(context.time_remaining()) as service:
            try:
                user = service.get_user(request.id)
            except Exception as e:
                self._abort(context, e, "failed to get user")
            return GetUserResponse(user=user_to_message(user))

    def GetUserByEmail(
        self, request: GetUserByEmailRequest, context: grpc.ServicerContext
    ) -> GetUserResponse:
        logger.debug(
            f"GetUserByEmail request received: {request.email}", extra={"email": request.email}
        )
        with self.service_scope(context.time_remaining()) as service:
            try:
                user = service.get_user_by_email(request.email)
            except Exception as e:
                self._abort(context, e, "failed to get user")
            return GetUserResponse(user=user_to_message(user))

    def UpdateUser(
        self, request: UpdateUserRequest, context: grpc.ServicerContext
    ) -> UpdateUserResponse:
        logger.info(f"UpdateUser request received: {request.id}", extra={"user_id": request.id})

        fields = request.model_dump(exclude={"id", "status"}, exclude_none=True)
        if request.status is not None:
            fields["status"] = status_from_wire(request.status)
        updates = UserUpdate(**fields)

        with self.service_scope(context.time_remaining()) as service:
            try:
                user = service.update_user(request.id, updates)
            except Exception as e:
                self._abort(context, e, "failed to update user")
            return UpdateUserResponse(user=user_to_message(user))

    def DeleteUser(self, request: DeleteUserRequest, context: grpc.ServicerContext) -> Empty:
        logger.info(f"DeleteUser request received: {request.id}", extra={"user_id": request.id})
        with self.service_scope(context.time_remaining()) as service:
            try:
                service.delete_user(request.id)
            except Exception as e:
                self._abort(context, e, "failed to delete user")
        return Empty()

    def ListUsers(
        self, request: ListUsersRequest, context: grpc.ServicerContext
    ) -> ListUsersResponse:
        logger.debug(
            f"ListUsers request received: page={request.page} page_size={request.page_size}",
            extra={"page": request.page, "page_size": request.page_size},
        )
        with self.service_scope(context.time_remaining()) as service:
            try:
                result = service.list_users(request.page, request.page_size, request.filter)
            except Exception as e:
                self._abort(context, e, "failed to list users")
            return ListUsersResponse(
                users=[user_to_message(user) for user in result.users],
                total=result.total,
                page=result.page,
                page_size=result.page_size,
            )

    @staticmethod
    def _abort(context: grpc.ServicerContext, error: Exception, message: str) -> NoReturn:
        """Abort the RPC. Only conflict and not-found keep their meaning on the wire."""
        if isinstance(error, AlreadyExistsError):
            context.abort(grpc.StatusCode.ALREADY_EXISTS, "user already exists")
        if isinstance(error, NotFoundError):
            context.abort(grpc.StatusCode.NOT_FOUND, "user not found")
        logger.error(
            f"{message}: {error}",
            exc_info=error,
            extra={"grpc_code": grpc.StatusCode.INTERNAL.name, "error_type": type(error).__name__},
        )
        context.abort(grpc.StatusCode.INTERNAL, message)
