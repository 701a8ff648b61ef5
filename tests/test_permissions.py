"""
Unit tests for role and ownership rules.
"""

import pytest

from sublet.auth.permissions import PermissionDeniedError, Role, can_modify, require_role
from sublet.errors import Forbidden


class TestCanModify:
    """Owners and admins may modify; nobody else."""

    def test_owner(self):
        assert can_modify(Role.USER, "u1", "u1")

    def test_admin(self):
        assert can_modify(Role.ADMIN, "admin", "u1")

    def test_other_user(self):
        assert not can_modify(Role.USER, "u2", "u1")


class TestRequireRole:
    """Test role allow-lists."""

    def test_allowed(self):
        require_role("u1", Role.ADMIN, [Role.ADMIN], action="read stats")

    def test_denied(self):
        with pytest.raises(PermissionDeniedError) as exc:
            require_role("u1", Role.USER, [Role.ADMIN], action="read stats")

        assert isinstance(exc.value, Forbidden)
        assert exc.value.user_id == "u1"
        assert exc.value.action == "read stats"
        assert exc.value.status == 403
        assert "requires: admin" in exc.value.message
