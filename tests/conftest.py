"""
Shared fixtures: a throwaway SQLite database, a pinned clock and a wired
Marketplace per test.
"""

from datetime import datetime, timedelta, timezone

import pytest

from sublet.auth.models import Identity
from sublet.auth.permissions import Role
from sublet.config import Settings
from sublet.context import AppContext
from sublet.service import Marketplace


START = datetime(2025, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        jwt_secret="test-secret-key",
        db_path=tmp_path / "sublet.db",
        bcrypt_rounds=4,
    )


@pytest.fixture
def context(settings, clock):
    return AppContext.create(settings, clock=clock)


@pytest.fixture
def marketplace(context):
    return Marketplace(context)


def make_user(marketplace, name, role=Role.USER):
    """Create an account and return (Identity, bearer header)."""
    account = marketplace.users.create_account(name, f"{name}@example.com", "password123", role)
    token = marketplace.context.tokens.issue(account.id, account.role.value)
    return Identity(id=account.id, role=account.role), f"Bearer {token}"


@pytest.fixture
def alice(marketplace):
    return make_user(marketplace, "alice")


@pytest.fixture
def bob(marketplace):
    return make_user(marketplace, "bob")


@pytest.fixture
def admin(marketplace):
    return make_user(marketplace, "root", Role.ADMIN)


def listing_data(**overrides):
    data = {
        "title": "Sunny room near campus",
        "description": "Quiet, bright and close to the tram.",
        "price": 800,
        "deposit": 400,
        "startDate": "2025-06-01",
        "endDate": "2025-08-31",
        "location": "Berlin Mitte",
        "roomType": "studio",
        "furnished": True,
        "images": ["https://img.example.com/1.jpg"],
    }
    data.update(overrides)
    return data
