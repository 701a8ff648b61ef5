"""
Sublet marketplace core.

Access control, listing availability matching and the tip ledger, exposed
through the :class:`~sublet.service.Marketplace` facade.
"""

from .config import Settings
from .context import AppContext
from .errors import (
    AuthenticationError,
    Forbidden,
    InvalidInput,
    InvalidOperation,
    NotFound,
    SubletError,
    Unauthorized,
    Unavailable,
)
from .service import Marketplace

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "AppContext",
    "Marketplace",
    "SubletError",
    "InvalidInput",
    "Unauthorized",
    "AuthenticationError",
    "Forbidden",
    "NotFound",
    "InvalidOperation",
    "Unavailable",
]
