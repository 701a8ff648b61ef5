"""
Tip ledger.

Records tips against listings and moves each one through its lifecycle::

    pending -> completed
    pending -> failed

Completed and failed tips never change again. Transitions are applied with a
compare-and-set on the current status, so when two callers race to settle
the same tip exactly one of them wins and the other gets InvalidOperation.
"""

import decimal
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from loguru import logger

from ..auth.jwt_handler import utc_now
from ..auth.models import Identity
from ..auth.permissions import PermissionDeniedError
from ..errors import InvalidInput, InvalidOperation, NotFound
from ..identifiers import is_valid_id, new_id
from ..listings.matcher import load_listing
from ..storage.repositories import ListingRepository, TipRepository
from .models import MESSAGE_MAX_LENGTH, Tip, TipStatus


CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000000.00")


def parse_amount(value: Any) -> Decimal:
    """
    Convert a caller-supplied amount into an exact two-place Decimal.

    Raises:
        InvalidInput: If the value is not a positive number with at most
            two decimal places
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInput("Tip amount must be a number")

    try:
        amount = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except decimal.InvalidOperation as e:
        raise InvalidInput("Tip amount must be a number") from e

    if not amount.is_finite():
        raise InvalidInput("Tip amount must be a number")
    if amount <= 0:
        raise InvalidInput("Tip amount must be greater than 0")
    if amount > MAX_AMOUNT:
        raise InvalidInput(f"Tip amount cannot exceed {MAX_AMOUNT}")
    if amount != amount.quantize(CENT):
        raise InvalidInput("Tip amount cannot have more than 2 decimal places")

    return amount.quantize(CENT)


class TipLedger:
    """Creates tips, settles or fails them, and reports completed totals."""

    def __init__(
        self,
        tips: TipRepository,
        listings: ListingRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize ledger.

        Args:
            tips: Tip repository
            listings: Listing repository, used to validate the tip target
            clock: Callable returning the current UTC time
        """
        self.tips = tips
        self.listings = listings
        self.clock = clock or utc_now

    def create(
        self,
        identity: Identity,
        listing_id: str,
        amount: Any,
        message: Optional[str] = None,
    ) -> Tip:
        """
        Record a pending tip from ``identity`` to the listing's owner.

        Checks run in order and nothing is written unless all pass.

        Raises:
            NotFound: If the listing does not exist
            InvalidOperation: If the caller owns the listing
            InvalidInput: If the amount or message is invalid
        """
        listing = load_listing(self.listings, listing_id)

        if listing.owner_id == identity.id:
            logger.warning(f"User {identity.id} tried to tip own listing {listing_id}")
            raise InvalidOperation("cannot tip own listing")

        value = parse_amount(amount)

        if message is not None:
            message = str(message).strip() or None
        if message is not None and len(message) > MESSAGE_MAX_LENGTH:
            raise InvalidInput(f"Message cannot be more than {MESSAGE_MAX_LENGTH} characters")

        now = self.clock()
        tip = Tip(
            id=new_id(),
            listing_id=listing.id,
            from_user_id=identity.id,
            to_user_id=listing.owner_id,
            amount=value,
            status=TipStatus.PENDING,
            message=message,
            created_at=now,
            updated_at=now,
        )
        self.tips.create(tip)

        logger.info(f"Tip created: {tip.id} ({value}) on listing {listing.id} from {identity.id}")
        return tip

    def complete(self, tip_id: str, transaction_id: str) -> Tip:
        """
        Settle a pending tip.

        Raises:
            InvalidInput: If the transaction id is empty
            NotFound: If the tip does not exist
            InvalidOperation: If the tip is already completed or failed
        """
        if not transaction_id or not str(transaction_id).strip():
            raise InvalidInput("Transaction id is required")

        return self._transition(
            tip_id,
            TipStatus.COMPLETED,
            {"transaction_id": str(transaction_id).strip()},
        )

    def fail(self, tip_id: str, reason: Optional[str] = None) -> Tip:
        """
        Mark a pending tip as failed.

        Raises:
            NotFound: If the tip does not exist
            InvalidOperation: If the tip is already completed or failed
        """
        reason = reason.strip() if reason else None
        return self._transition(tip_id, TipStatus.FAILED, {"failure_reason": reason or None})

    def get(self, identity: Identity, tip_id: str) -> Tip:
        """
        Read a tip. Only the payer, the payee and admins may see it.

        Raises:
            NotFound: If the tip does not exist
            Forbidden: If the caller is not a party to the tip
        """
        tip = self._load(tip_id)
        if not identity.is_admin and identity.id not in (tip.from_user_id, tip.to_user_id):
            raise PermissionDeniedError(identity.id, f"read tip {tip_id}", "not a party to the tip")
        return tip

    def total_for_listing(self, listing_id: str) -> Decimal:
        """Sum of completed tips on a listing; 0 if none."""
        return self.tips.sum_amount(listing_id=listing_id, status=TipStatus.COMPLETED)

    def total_for_user(self, user_id: str) -> Decimal:
        """Sum of completed tips paid by a user; 0 if none."""
        return self.tips.sum_amount(from_user_id=user_id, status=TipStatus.COMPLETED)

    def _transition(self, tip_id: str, to_status: TipStatus, fields: Dict[str, Any]) -> Tip:
        tip = self._load(tip_id)
        if tip.status.is_terminal:
            raise InvalidOperation(f"Tip is already {tip.status.value}")

        fields = dict(fields, updated_at=self.clock())
        if not self.tips.transition(tip_id, TipStatus.PENDING, to_status, fields):
            # Lost a race with another transition, or the record vanished
            current = self.tips.get_by_id(tip_id)
            if current is None:
                raise NotFound("Tip not found")
            raise InvalidOperation(f"Tip is already {current.status.value}")

        logger.success(f"Tip {tip_id} {to_status.value}")
        return self._load(tip_id)

    def _load(self, tip_id: str) -> Tip:
        if not is_valid_id(tip_id):
            raise NotFound("Tip not found")
        tip = self.tips.get_by_id(tip_id)
        if tip is None:
            raise NotFound("Tip not found")
        return tip
