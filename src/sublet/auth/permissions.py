"""
Role-based access rules for the marketplace.

Two roles exist. Admins may act on any listing and read the reporting
endpoints; users may only mutate what they own.
"""

from enum import Enum
from typing import Iterable, Optional

from ..errors import Forbidden


class Role(str, Enum):
    """Predefined account roles."""
    USER = "user"
    ADMIN = "admin"


def role_allowed(role: Role, allowed: Iterable[Role]) -> bool:
    return role in set(allowed)


def can_modify(role: Role, actor_id: str, owner_id: str) -> bool:
    """Owners may modify their own records; admins may modify anything."""
    return role == Role.ADMIN or actor_id == owner_id


class PermissionDeniedError(Forbidden):
    """
    Raised when an identity attempts an action it is not allowed to perform.

    Attributes:
        user_id: The account that was denied
        action: The action that was denied
    """

    def __init__(self, user_id: str, action: str, reason: Optional[str] = None):
        self.user_id = user_id
        self.action = action

        message = f"User {user_id} denied permission for action: {action}"
        if reason:
            message += f" ({reason})"

        super().__init__(message)


def require_role(user_id: str, role: Role, allowed: Iterable[Role], action: str) -> None:
    """
    Require one of the allowed roles.

    Raises:
        PermissionDeniedError: If ``role`` is not in ``allowed``
    """
    allowed = tuple(allowed)
    if not role_allowed(role, allowed):
        raise PermissionDeniedError(
            user_id=user_id,
            action=action,
            reason="requires: " + ", ".join(r.value for r in allowed),
        )
