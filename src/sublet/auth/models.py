"""
User authentication data models.

Data classes for accounts and the per-request identity.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .permissions import Role


@dataclass(frozen=True)
class Identity:
    """
    Authenticated caller for the duration of one request.

    Attributes:
        id: Account identifier (UUID string)
        role: Account role
    """
    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass
class Account:
    """
    User account.

    Attributes:
        id: Unique account identifier (UUID)
        username: Unique lower-cased username
        email: Unique lower-cased email address
        password_hash: Bcrypt hashed password
        role: Account role
        created_at: Account creation timestamp
        last_login_at: Last successful login, if any
    """
    id: str
    username: str
    email: str
    password_hash: str
    role: Role
    created_at: datetime
    last_login_at: Optional[datetime] = None

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role.value,
            "createdAt": self.created_at.isoformat(),
        }
