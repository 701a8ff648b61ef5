"""
Process-wide application context.

Built once at start-up from Settings and handed to every component, so the
signing secret and the storage handle are never looked up globally.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .auth.jwt_handler import JWTHandler, utc_now
from .auth.passwords import CredentialHasher
from .config import Settings
from .storage.database import (
    Database,
    SQLiteAccountRepository,
    SQLiteListingRepository,
    SQLiteTipRepository,
)
from .storage.repositories import AccountRepository, ListingRepository, TipRepository


@dataclass(frozen=True)
class AppContext:
    """Shared, read-only collaborators for the lifetime of the process."""
    settings: Settings
    clock: Callable[[], datetime]
    hasher: CredentialHasher
    tokens: JWTHandler
    accounts: AccountRepository
    listings: ListingRepository
    tips: TipRepository

    @classmethod
    def create(
        cls,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "AppContext":
        """Open and initialize the SQLite database and wire the collaborators."""
        clock = clock or utc_now

        db = Database(settings.db_path, timeout=settings.db_timeout)
        db.initialize()

        return cls(
            settings=settings,
            clock=clock,
            hasher=CredentialHasher(rounds=settings.bcrypt_rounds),
            tokens=JWTHandler(settings.jwt_secret, ttl=settings.token_ttl, clock=clock),
            accounts=SQLiteAccountRepository(db),
            listings=SQLiteListingRepository(db),
            tips=SQLiteTipRepository(db),
        )
