"""
Access control for inbound requests.

A request moves through an explicit, ordered pipeline of steps::

    extract_credential -> resolve_identity -> [require_roles | require_listing_owner]

Each step takes a RequestContext and returns an enriched copy, or raises a
typed error that stops the pipeline. Steps only read state; nothing here
writes to storage.
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional

from loguru import logger

from ..errors import Unauthorized
from ..listings.matcher import load_listing
from ..listings.models import Listing
from ..storage.repositories import ListingRepository
from .jwt_handler import InvalidToken, JWTHandler
from .models import Identity
from .permissions import PermissionDeniedError, Role, can_modify, require_role


BEARER_SCHEME = "bearer"


@dataclass(frozen=True)
class RequestContext:
    """
    What the pipeline knows about a request so far.

    Attributes:
        authorization: Raw Authorization header value
        token: Bearer token, once extracted
        identity: Resolved caller, once the token is verified
        listing: Listing loaded by the ownership check
    """
    authorization: Optional[str] = None
    token: Optional[str] = None
    identity: Optional[Identity] = None
    listing: Optional[Listing] = None


Step = Callable[[RequestContext], RequestContext]


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token from ``Bearer <token>``, or None if absent or malformed."""
    if not authorization:
        return None
    parts = authorization.strip().split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        return None
    return parts[1]


class AccessControl:
    """
    Authentication and authorization pipeline.

    Handles token extraction and verification, role allow-lists and
    listing ownership checks in front of protected operations.
    """

    def __init__(self, tokens: JWTHandler, listings: ListingRepository):
        """
        Initialize access control.

        Args:
            tokens: Token service used to verify credentials
            listings: Repository used for ownership checks
        """
        self.tokens = tokens
        self.listings = listings

    def extract_credential(self, context: RequestContext) -> RequestContext:
        token = parse_bearer(context.authorization)
        if token is None:
            raise Unauthorized("missing credential")
        return replace(context, token=token)

    def resolve_identity(self, context: RequestContext) -> RequestContext:
        if context.token is None:
            raise Unauthorized("missing credential")

        try:
            payload = self.tokens.verify(context.token)
            role = Role(payload.role)
        except (InvalidToken, ValueError) as e:
            logger.warning(f"Rejected credential: {e}")
            raise Unauthorized("invalid or expired credential") from e

        return replace(context, identity=Identity(id=payload.subject_id, role=role))

    def require_roles(self, *roles: Role) -> Step:
        """Step that admits only identities whose role is in ``roles``."""

        def step(context: RequestContext) -> RequestContext:
            identity = _require_identity(context)
            require_role(identity.id, identity.role, roles, action="access role-gated route")
            return context

        return step

    def require_listing_owner(self, listing_id: str) -> Step:
        """
        Step that admits the listing's owner or an admin.

        The listing is loaded fresh at this point and attached to the
        context, so the handler does not fetch it again.
        """

        def step(context: RequestContext) -> RequestContext:
            identity = _require_identity(context)
            listing = self._load_listing(listing_id)

            if not can_modify(identity.role, identity.id, listing.owner_id):
                logger.warning(f"User {identity.id} is not allowed to modify listing {listing_id}")
                raise PermissionDeniedError(identity.id, f"modify listing {listing_id}", "not the owner")

            return replace(context, listing=listing)

        return step

    def run(self, context: RequestContext, *steps: Step) -> RequestContext:
        """Run ``steps`` in order; the first failure stops the pipeline."""
        for step in steps:
            context = step(context)
        return context

    def run_for(self, identity: Identity, *steps: Step) -> RequestContext:
        """Apply ``steps`` for an identity that is already resolved."""
        return self.run(RequestContext(identity=identity), *steps)

    def admit(self, authorization: Optional[str], *steps: Step) -> RequestContext:
        """Full pipeline: authenticate the header, then apply ``steps``."""
        context = RequestContext(authorization=authorization)
        return self.run(context, self.extract_credential, self.resolve_identity, *steps)

    def authenticate(self, authorization: Optional[str]) -> Identity:
        """
        Resolve the caller from a raw Authorization header.

        Raises:
            Unauthorized: If the credential is missing, invalid or expired
        """
        return self.admit(authorization).identity

    def authorize_owner_or_admin(self, identity: Identity, listing_id: str) -> Listing:
        """
        Check that ``identity`` may modify ``listing_id``.

        Raises:
            NotFound: If the listing id is malformed or no listing exists
            Forbidden: If the caller is neither owner nor admin
        """
        return self.run_for(identity, self.require_listing_owner(listing_id)).listing

    def _load_listing(self, listing_id: str) -> Listing:
        return load_listing(self.listings, listing_id)


def _require_identity(context: RequestContext) -> Identity:
    if context.identity is None:
        raise Unauthorized("missing credential")
    return context.identity


__all__ = ["AccessControl", "RequestContext", "Step", "parse_bearer"]
