"""Errors raised by the session controller, each carrying its HTTP status."""


class SessionError(Exception):
    status_code = 500
    error = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConflictError(SessionError):
    status_code = 409
    error = "CONFLICT"
    default_message = "Conflict"


class UnauthorizedError(SessionError):
    status_code = 401
    error = "UNAUTHORIZED"
    default_message = "Unauthorized"


class ForbiddenError(SessionError):
    status_code = 403
    error = "FORBIDDEN"
    default_message = "Forbidden"


class NotFoundError(SessionError):
    status_code = 404
    error = "NOT_FOUND"
    default_message = "Resource not found"


class UnknownUserError(NotFoundError):
    # login answers an unknown name with 400, not 404
    status_code = 400
    default_message = "Cannot find user"


class InternalError(SessionError):
    pass


class MissingRefreshSecretError(SessionError):
    # login without a refresh signing secret is answered with 400
    status_code = 400
    error = "BAD_REQUEST"
    default_message = "Cannot find Refresh Token"
