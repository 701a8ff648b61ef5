"""
Persistence for the sublet core.

Abstract repository interfaces plus their SQLite implementations.
"""

from .repositories import AccountRepository, ListingRepository, TipRepository
from .database import (
    Database,
    SQLiteAccountRepository,
    SQLiteListingRepository,
    SQLiteTipRepository,
)

__all__ = [
    "AccountRepository",
    "ListingRepository",
    "TipRepository",
    "Database",
    "SQLiteAccountRepository",
    "SQLiteListingRepository",
    "SQLiteTipRepository",
]
