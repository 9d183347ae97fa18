"""Error types shared by the repository, service and gRPC layers."""


class UserServiceError(Exception):
    """Base class for all user service errors."""

    message = "user service error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class InvalidInputError(UserServiceError):
    """The caller supplied data that cannot be processed."""

    message = "invalid user data"


class InvalidEmailError(InvalidInputError):
    message = "invalid email"


class InvalidPasswordError(InvalidInputError):
    message = "invalid password"


class NotFoundError(UserServiceError):
    """No active user matches the lookup."""

    message = "user not found"


class AlreadyExistsError(UserServiceError):
    """An active user with the same email already exists."""

    message = "user already exists"


class InternalError(UserServiceError):
    """Unexpected failure; the original exception is chained as ``__cause__``."""

    message = "internal error"
