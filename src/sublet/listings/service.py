"""
Listing publication, update and removal.

Every mutation goes through the access-control ownership check first, which
loads the listing fresh; only the owner or an admin gets past it.
"""

from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from loguru import logger

from ..auth.jwt_handler import utc_now
from ..auth.middleware import AccessControl
from ..auth.models import Identity
from ..errors import InvalidInput, NotFound
from ..identifiers import new_id
from ..storage.repositories import ListingRepository
from ..validation import parse_model
from .models import Listing, ListingDraft, ListingPatch


class ListingService:
    """Create, update and delete listings on behalf of an identity."""

    def __init__(
        self,
        listings: ListingRepository,
        access: AccessControl,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.listings = listings
        self.access = access
        self.clock = clock or utc_now

    def create(self, identity: Identity, data: Mapping[str, Any]) -> Listing:
        """
        Publish a listing owned by ``identity``.

        Raises:
            InvalidInput: If any field is missing or invalid
        """
        draft = parse_model(ListingDraft, data)
        now = self.clock()

        listing = Listing(
            id=new_id(),
            owner_id=identity.id,
            title=draft.title,
            description=draft.description,
            price=draft.price,
            deposit=draft.deposit,
            start_date=draft.start_date,
            end_date=draft.end_date,
            location=draft.location,
            room_type=draft.room_type,
            furnished=draft.furnished,
            images=list(draft.images),
            created_at=now,
            updated_at=now,
        )
        self.listings.create(listing)

        logger.info(f"Listing created: {listing.id} by {identity.id}")
        return listing

    def update(self, identity: Identity, listing_id: str, data: Mapping[str, Any]) -> Listing:
        """
        Apply a partial update.

        Raises:
            NotFound: If the listing does not exist
            Forbidden: If the caller is neither owner nor admin
            InvalidInput: If a field is invalid or the dates would end up inverted
        """
        current = self.access.authorize_owner_or_admin(identity, listing_id)
        changes = parse_model(ListingPatch, data).changes()

        start = changes.get("start_date", current.start_date)
        end = changes.get("end_date", current.end_date)
        if end <= start:
            raise InvalidInput("End date must be after start date")

        changes["updated_at"] = self.clock()
        updated = self.listings.update_by_id(listing_id, changes)
        if updated is None:
            raise NotFound("Listing not found")

        logger.info(f"Listing updated: {listing_id} by {identity.id} ({', '.join(sorted(changes))})")
        return updated

    def delete(self, identity: Identity, listing_id: str) -> None:
        """
        Remove a listing outright.

        Raises:
            NotFound: If the listing does not exist
            Forbidden: If the caller is neither owner nor admin
        """
        self.access.authorize_owner_or_admin(identity, listing_id)
        if not self.listings.delete_by_id(listing_id):
            raise NotFound("Listing not found")

        logger.info(f"Listing deleted: {listing_id} by {identity.id}")
