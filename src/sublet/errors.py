"""
Error taxonomy for the sublet core.

Every failure raised to the boundary layer is a SubletError subclass with a
stable ``category`` string and the HTTP status the API layer renders it as.
"""

from typing import Optional


class SubletError(Exception):
    """
    Base class for all typed core errors.

    Attributes:
        category: Stable machine-readable category
        status: HTTP status used by the API layer
        message: Human-readable description
    """

    category = "error"
    status = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.category, "message": self.message}


class InvalidInput(SubletError):
    """Malformed or missing caller-supplied data."""

    category = "invalid_input"
    status = 400
    default_message = "Invalid input"


class Unauthorized(SubletError):
    """No usable identity on the request."""

    category = "unauthorized"
    status = 401
    default_message = "Authorization required"


class AuthenticationError(Unauthorized):
    """Login failed: unknown account or wrong password."""

    default_message = "Invalid username or password"


class Forbidden(SubletError):
    """Identity known, but lacks the role or ownership required."""

    category = "forbidden"
    status = 403
    default_message = "Access denied"


class NotFound(SubletError):
    """Referenced entity does not exist."""

    category = "not_found"
    status = 404
    default_message = "Not found"


class InvalidOperation(SubletError):
    """Operation not valid for the entity's current state."""

    category = "invalid_operation"
    status = 409
    default_message = "Invalid operation"


class Unavailable(SubletError):
    """Storage collaborator failed or timed out."""

    category = "unavailable"
    status = 503
    default_message = "Service temporarily unavailable"


__all__ = [
    "SubletError",
    "InvalidInput",
    "Unauthorized",
    "AuthenticationError",
    "Forbidden",
    "NotFound",
    "InvalidOperation",
    "Unavailable",
]
