"""
Unit tests for the access-control pipeline.
"""

import pytest

from conftest import listing_data
from sublet.auth.middleware import RequestContext, parse_bearer
from sublet.auth.permissions import Role
from sublet.errors import Forbidden, NotFound, Unauthorized


class TestParseBearer:
    """Test Authorization header parsing."""

    def test_bearer_token(self):
        assert parse_bearer("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert parse_bearer("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Basic abc", "Bearer a b"])
    def test_malformed(self, header):
        assert parse_bearer(header) is None


class TestAuthenticate:
    """Test credential extraction and identity resolution."""

    def test_valid_credential(self, marketplace, alice):
        identity, header = alice
        assert marketplace.authenticate(header) == identity

    def test_missing_credential(self, marketplace):
        with pytest.raises(Unauthorized) as exc:
            marketplace.authenticate(None)
        assert exc.value.message == "missing credential"

    def test_malformed_header(self, marketplace):
        with pytest.raises(Unauthorized):
            marketplace.authenticate("Token abc")

    def test_invalid_token(self, marketplace):
        with pytest.raises(Unauthorized) as exc:
            marketplace.authenticate("Bearer not.a.token")
        assert exc.value.message == "invalid or expired credential"

    def test_expired_token(self, marketplace, alice, clock):
        _, header = alice
        clock.advance(days=8)

        with pytest.raises(Unauthorized):
            marketplace.authenticate(header)

    def test_unknown_role_in_token(self, marketplace, context):
        token = context.tokens.issue("someone", "superuser")
        with pytest.raises(Unauthorized):
            marketplace.authenticate(f"Bearer {token}")


class TestRoleGate:
    """Test require_roles."""

    def test_admin_admitted(self, marketplace, admin):
        identity, header = admin
        context = marketplace.access.admit(header, marketplace.access.require_roles(Role.ADMIN))
        assert context.identity == identity

    def test_user_rejected(self, marketplace, alice):
        _, header = alice
        with pytest.raises(Forbidden):
            marketplace.access.admit(header, marketplace.access.require_roles(Role.ADMIN))

    def test_step_without_identity(self, marketplace):
        step = marketplace.access.require_roles(Role.USER)
        with pytest.raises(Unauthorized):
            step(RequestContext())


class TestOwnership:
    """Test authorize_owner_or_admin."""

    def test_owner_allowed(self, marketplace, alice):
        identity, _ = alice
        listing = marketplace.create_listing(identity, listing_data())

        assert marketplace.authorize_owner_or_admin(identity, listing.id).id == listing.id

    def test_admin_allowed(self, marketplace, alice, admin):
        listing = marketplace.create_listing(alice[0], listing_data())
        assert marketplace.authorize_owner_or_admin(admin[0], listing.id).id == listing.id

    def test_other_user_forbidden(self, marketplace, alice, bob):
        listing = marketplace.create_listing(alice[0], listing_data())
        with pytest.raises(Forbidden):
            marketplace.authorize_owner_or_admin(bob[0], listing.id)

    def test_unknown_listing(self, marketplace, alice):
        with pytest.raises(NotFound):
            marketplace.authorize_owner_or_admin(alice[0], "2b1d1a4e-8f44-4f5c-9d53-0f1f4a0c2b77")

    def test_malformed_listing_id(self, marketplace, alice):
        with pytest.raises(NotFound):
            marketplace.authorize_owner_or_admin(alice[0], "not-an-id")

    def test_pipeline_attaches_listing(self, marketplace, alice):
        identity, header = alice
        listing = marketplace.create_listing(identity, listing_data())

        context = marketplace.access.admit(header, marketplace.access.require_listing_owner(listing.id))
        assert context.listing.id == listing.id
        assert context.identity == identity
