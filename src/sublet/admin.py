"""
Admin reporting.

Read-only rollups computed live from the repositories on every call. The
admin role check happens in the access-control pipeline before this runs.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List

from .auth.models import Account
from .listings.models import Listing
from .storage.repositories import AccountRepository, ListingRepository, TipRepository
from .tips.models import Tip, TipStatus


LATEST_LIMIT = 10


@dataclass
class AdminSnapshot:
    """Counts, completed tip total and the newest records of each kind."""
    total_users: int
    total_listings: int
    total_completed_tip_amount: Decimal
    latest_users: List[Account]
    latest_listings: List[Listing]
    latest_tips: List[Tip]

    def to_dict(self) -> dict:
        return {
            "stats": {
                "totalUsers": self.total_users,
                "totalListings": self.total_listings,
                "totalTipsAmount": str(self.total_completed_tip_amount),
            },
            "lists": {
                "latestUsers": [account.to_public_dict() for account in self.latest_users],
                "latestListings": [listing.to_dict() for listing in self.latest_listings],
                "latestTips": [tip.to_dict() for tip in self.latest_tips],
            },
        }


class AdminAggregator:
    """Builds AdminSnapshot reports."""

    def __init__(
        self,
        accounts: AccountRepository,
        listings: ListingRepository,
        tips: TipRepository,
        limit: int = LATEST_LIMIT,
    ):
        self.accounts = accounts
        self.listings = listings
        self.tips = tips
        self.limit = limit

    def snapshot(self) -> AdminSnapshot:
        return AdminSnapshot(
            total_users=self.accounts.count(),
            total_listings=self.listings.count(),
            total_completed_tip_amount=self.tips.sum_amount(status=TipStatus.COMPLETED),
            latest_users=self.accounts.latest(self.limit),
            latest_listings=self.listings.latest(self.limit),
            latest_tips=self.tips.latest(self.limit),
        )
