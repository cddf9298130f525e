"""Domain errors raised by the service layer.

Each error carries a stable ``error`` code and the HTTP status the API layer
maps it to (see ``marketplace.main``).
"""


class ServiceError(Exception):
    """Base class for errors the API layer turns into JSON responses."""

    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(ServiceError):
    """Malformed input or an unresolved reference in a request body."""

    status_code = 400
    error = "bad_request"


class UnauthorizedError(ServiceError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    error = "unauthorized"


class ForbiddenError(ServiceError):
    """Authenticated, but the role or ownership check failed."""

    status_code = 403
    error = "forbidden"


class NotFoundError(ServiceError):
    """Referenced entity does not exist."""

    status_code = 404
    error = "not_found"


class ConflictError(ServiceError):
    """Duplicate unique key."""

    status_code = 409
    error = "conflict"
