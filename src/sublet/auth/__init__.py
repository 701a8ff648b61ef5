"""
Authentication module for the sublet marketplace.

Provides bcrypt password hashing, JWT identity tokens and the role model.
The request pipeline lives in ``sublet.auth.middleware`` and the login and
registration flows in ``sublet.auth.user_manager``.
"""

from .permissions import Role, PermissionDeniedError, can_modify, require_role
from .models import Account, Identity
from .passwords import CredentialHasher
from .jwt_handler import InvalidToken, JWTHandler, TokenPayload

__all__ = [
    # Roles and permissions
    "Role",
    "PermissionDeniedError",
    "can_modify",
    "require_role",
    # Models
    "Account",
    "Identity",
    # Credentials and tokens
    "CredentialHasher",
    "InvalidToken",
    "JWTHandler",
    "TokenPayload",
]
