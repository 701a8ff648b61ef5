"""
Repository interfaces consumed by the core.

Any persistence technology can back the core by implementing these. The
SQLite implementations live in :mod:`sublet.storage.database`.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from ..auth.models import Account
from ..listings.models import Listing, ListingFilter
from ..tips.models import Tip, TipStatus


class AccountRepository(ABC):
    """Account storage. The core only writes on registration and login."""

    @abstractmethod
    def create(self, account: Account) -> Account:
        """Persist a new account; duplicate username/email raises InvalidInput."""

    @abstractmethod
    def get_by_id(self, account_id: str) -> Optional[Account]:
        ...

    @abstractmethod
    def find_by_identifier(self, identifier: str) -> Optional[Account]:
        """Look an account up by email or username."""

    @abstractmethod
    def touch_login(self, account_id: str, when: datetime) -> None:
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def latest(self, limit: int) -> List[Account]:
        """Newest accounts first."""


class ListingRepository(ABC):
    """Listing storage."""

    @abstractmethod
    def create(self, listing: Listing) -> Listing:
        ...

    @abstractmethod
    def get_by_id(self, listing_id: str) -> Optional[Listing]:
        ...

    @abstractmethod
    def update_by_id(self, listing_id: str, patch: Dict[str, Any]) -> Optional[Listing]:
        """Apply ``patch`` and return the updated listing, or None if it is gone."""

    @abstractmethod
    def delete_by_id(self, listing_id: str) -> bool:
        ...

    @abstractmethod
    def find(self, listing_filter: ListingFilter, skip: int, limit: int) -> Tuple[List[Listing], int]:
        """Return one newest-first page of matches and the total match count."""

    @abstractmethod
    def count(self, listing_filter: Optional[ListingFilter] = None) -> int:
        ...

    @abstractmethod
    def latest(self, limit: int) -> List[Listing]:
        ...


class TipRepository(ABC):
    """Tip storage. Tips are never deleted."""

    @abstractmethod
    def create(self, tip: Tip) -> Tip:
        ...

    @abstractmethod
    def get_by_id(self, tip_id: str) -> Optional[Tip]:
        ...

    @abstractmethod
    def transition(
        self,
        tip_id: str,
        from_status: TipStatus,
        to_status: TipStatus,
        fields: Dict[str, Any],
    ) -> bool:
        """
        Compare-and-set a status change.

        Returns:
            True if the tip was in ``from_status`` and was updated, False if
            it was missing or had already moved on.
        """

    @abstractmethod
    def sum_amount(
        self,
        listing_id: Optional[str] = None,
        from_user_id: Optional[str] = None,
        status: Optional[TipStatus] = None,
    ) -> Decimal:
        ...

    @abstractmethod
    def latest(self, limit: int) -> List[Tip]:
        ...
