"""
Boundary facade.

``Marketplace`` is the single entry point transport layers call into. It
wires the access-control pipeline in front of the listing, tip and admin
components and returns plain result objects or raises typed errors.
"""

from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from .admin import AdminAggregator, AdminSnapshot
from .auth.middleware import AccessControl
from .auth.models import Identity
from .auth.permissions import Role
from .auth.user_manager import LoginResult, UserManager
from .context import AppContext
from .listings.matcher import AvailabilityMatcher
from .listings.models import Listing, ListingPage, SearchConstraint
from .listings.service import ListingService
from .tips.ledger import TipLedger
from .tips.models import Tip


class Marketplace:
    """Operations exposed to the HTTP layer (or any other transport)."""

    def __init__(self, context: AppContext):
        self.context = context
        self.access = AccessControl(context.tokens, context.listings)
        self.users = UserManager(context.accounts, context.hasher, context.tokens, clock=context.clock)
        self.matcher = AvailabilityMatcher(context.listings)
        self.listing_service = ListingService(context.listings, self.access, clock=context.clock)
        self.ledger = TipLedger(context.tips, context.listings, clock=context.clock)
        self.admin = AdminAggregator(context.accounts, context.listings, context.tips)

    # ------------------------------------------------------------------
    # Accounts and identity
    # ------------------------------------------------------------------

    def login(self, identifier: str, password: str) -> LoginResult:
        return self.users.login(identifier, password)

    def register(self, username: str, email: str, password: str) -> LoginResult:
        return self.users.register(username, email, password)

    def authenticate(self, raw_credential: Optional[str]) -> Identity:
        return self.access.authenticate(raw_credential)

    def authorize_owner_or_admin(self, identity: Identity, listing_id: str) -> Listing:
        return self.access.authorize_owner_or_admin(identity, listing_id)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def search_listings(self, constraint: Union[SearchConstraint, Mapping[str, Any]]) -> ListingPage:
        return self.matcher.match(constraint)

    def get_listing(self, listing_id: str) -> Listing:
        return self.matcher.get_by_id(listing_id)

    def create_listing(self, identity: Identity, data: Mapping[str, Any]) -> Listing:
        return self.listing_service.create(identity, data)

    def update_listing(self, identity: Identity, listing_id: str, data: Mapping[str, Any]) -> Listing:
        return self.listing_service.update(identity, listing_id, data)

    def delete_listing(self, identity: Identity, listing_id: str) -> None:
        self.listing_service.delete(identity, listing_id)

    # ------------------------------------------------------------------
    # Tips
    # ------------------------------------------------------------------

    def create_tip(
        self,
        identity: Identity,
        listing_id: str,
        amount: Any,
        message: Optional[str] = None,
    ) -> str:
        return self.ledger.create(identity, listing_id, amount, message).id

    def complete_tip(self, tip_id: str, transaction_id: str) -> Tip:
        return self.ledger.complete(tip_id, transaction_id)

    def fail_tip(self, tip_id: str, reason: Optional[str] = None) -> Tip:
        return self.ledger.fail(tip_id, reason)

    def get_tip(self, identity: Identity, tip_id: str) -> Tip:
        return self.ledger.get(identity, tip_id)

    def tip_total_for_listing(self, listing_id: str) -> Decimal:
        return self.ledger.total_for_listing(listing_id)

    def tip_total_for_user(self, user_id: str) -> Decimal:
        return self.ledger.total_for_user(user_id)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def admin_snapshot(self, identity: Identity) -> AdminSnapshot:
        """
        Reporting snapshot for admins.

        Raises:
            Forbidden: If the caller is not an admin
        """
        self.access.run_for(identity, self.access.require_roles(Role.ADMIN))
        return self.admin.snapshot()
