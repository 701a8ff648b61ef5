"""
Unit tests for listing creation, update and deletion.
"""

from datetime import date

import pytest

from conftest import listing_data
from sublet.errors import Forbidden, InvalidInput, NotFound
from sublet.listings.models import RoomType


class TestCreate:
    """Test publishing a listing."""

    def test_create(self, marketplace, alice, clock):
        identity, _ = alice
        listing = marketplace.create_listing(identity, listing_data())

        assert listing.owner_id == identity.id
        assert listing.start_date == date(2025, 6, 1)
        assert listing.room_type is RoomType.STUDIO
        assert listing.created_at == clock.now
        assert marketplace.get_listing(listing.id).images == ["https://img.example.com/1.jpg"]

    def test_to_dict(self, marketplace, alice):
        data = marketplace.create_listing(alice[0], listing_data()).to_dict()

        assert data["startDate"] == "2025-06-01"
        assert data["roomType"] == "studio"
        assert data["durationDays"] == 91

    def test_end_before_start_rejected(self, marketplace, alice):
        with pytest.raises(InvalidInput):
            marketplace.create_listing(alice[0], listing_data(startDate="2025-06-01", endDate="2025-06-01"))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"title": ""},
            {"title": "x" * 101},
            {"price": -1},
            {"deposit": -5},
            {"location": "   "},
            {"roomType": "castle"},
            {"images": ["not a url"]},
            {"startDate": "June"},
        ],
    )
    def test_invalid_fields_rejected(self, marketplace, alice, overrides):
        with pytest.raises(InvalidInput):
            marketplace.create_listing(alice[0], listing_data(**overrides))

    def test_missing_field_rejected(self, marketplace, alice):
        data = listing_data()
        del data["price"]
        with pytest.raises(InvalidInput):
            marketplace.create_listing(alice[0], data)

    def test_rejected_input_stores_nothing(self, marketplace, alice):
        with pytest.raises(InvalidInput):
            marketplace.create_listing(alice[0], listing_data(price=-1))
        assert marketplace.search_listings({}).total_count == 0


class TestUpdate:
    """Test partial updates and ownership."""

    @pytest.fixture
    def listing(self, marketplace, alice):
        return marketplace.create_listing(alice[0], listing_data())

    def test_owner_updates(self, marketplace, alice, listing, clock):
        clock.advance(hours=1)
        updated = marketplace.update_listing(alice[0], listing.id, {"price": 950, "furnished": False})

        assert updated.price == 950
        assert updated.furnished is False
        assert updated.title == listing.title
        assert updated.updated_at == clock.now
        assert updated.created_at == listing.created_at

    def test_admin_updates(self, marketplace, admin, listing):
        updated = marketplace.update_listing(admin[0], listing.id, {"title": "Moderated"})
        assert updated.title == "Moderated"
        assert updated.owner_id == listing.owner_id

    def test_other_user_forbidden(self, marketplace, bob, listing):
        with pytest.raises(Forbidden):
            marketplace.update_listing(bob[0], listing.id, {"price": 1})
        assert marketplace.get_listing(listing.id).price == listing.price

    def test_missing_listing(self, marketplace, alice):
        with pytest.raises(NotFound):
            marketplace.update_listing(alice[0], "2b1d1a4e-8f44-4f5c-9d53-0f1f4a0c2b77", {"price": 1})

    def test_merged_dates_checked(self, marketplace, alice, listing):
        with pytest.raises(InvalidInput):
            marketplace.update_listing(alice[0], listing.id, {"endDate": "2025-05-01"})

    def test_dates_moved_together(self, marketplace, alice, listing):
        updated = marketplace.update_listing(
            alice[0], listing.id, {"startDate": "2025-10-01", "endDate": "2025-12-31"}
        )
        assert updated.start_date == date(2025, 10, 1)
        assert updated.end_date == date(2025, 12, 31)

    def test_null_field_rejected(self, marketplace, alice, listing):
        with pytest.raises(InvalidInput):
            marketplace.update_listing(alice[0], listing.id, {"title": None})

    def test_description_can_be_cleared(self, marketplace, alice, listing):
        updated = marketplace.update_listing(alice[0], listing.id, {"description": None})
        assert updated.description is None

    def test_empty_patch_is_a_touch(self, marketplace, alice, listing):
        updated = marketplace.update_listing(alice[0], listing.id, {})
        assert updated.title == listing.title


class TestDelete:
    """Test listing removal."""

    @pytest.fixture
    def listing(self, marketplace, alice):
        return marketplace.create_listing(alice[0], listing_data())

    def test_owner_deletes(self, marketplace, alice, listing):
        marketplace.delete_listing(alice[0], listing.id)
        with pytest.raises(NotFound):
            marketplace.get_listing(listing.id)

    def test_admin_deletes(self, marketplace, admin, listing):
        marketplace.delete_listing(admin[0], listing.id)
        assert marketplace.search_listings({}).total_count == 0

    def test_other_user_forbidden(self, marketplace, bob, listing):
        with pytest.raises(Forbidden):
            marketplace.delete_listing(bob[0], listing.id)
        assert marketplace.get_listing(listing.id).id == listing.id

    def test_delete_twice(self, marketplace, alice, listing):
        marketplace.delete_listing(alice[0], listing.id)
        with pytest.raises(NotFound):
            marketplace.delete_listing(alice[0], listing.id)
