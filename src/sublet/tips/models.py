"""
Tip data models.

A tip is a recorded pledge from one user to a listing's owner. Amounts are
exact decimals with at most two places.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


MESSAGE_MAX_LENGTH = 500


class TipStatus(str, Enum):
    """Tip lifecycle states; completed and failed are terminal."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TipStatus.PENDING


@dataclass
class Tip:
    """
    Monetary pledge against a listing.

    Attributes:
        id: Tip identifier (UUID)
        listing_id: Listing being tipped
        from_user_id: Paying account
        to_user_id: Listing owner at the time of the tip
        amount: Pledged amount (> 0, two decimal places at most)
        status: Current lifecycle state
        created_at: Creation timestamp
        updated_at: Last transition timestamp
        message: Optional note to the owner
        transaction_id: Settlement reference, set on completion
        failure_reason: Reason recorded on failure
    """
    id: str
    listing_id: str
    from_user_id: str
    to_user_id: str
    amount: Decimal
    status: TipStatus
    created_at: datetime
    updated_at: datetime
    message: Optional[str] = None
    transaction_id: Optional[str] = None
    failure_reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "listingId": self.listing_id,
            "fromUserId": self.from_user_id,
            "toUserId": self.to_user_id,
            "amount": str(self.amount),
            "status": self.status.value,
            "message": self.message,
            "transactionId": self.transaction_id,
            "failureReason": self.failure_reason,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


def to_cents(amount: Decimal) -> int:
    return int(amount * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))
