"""
Unit tests for token issuance and verification.
"""

from datetime import timedelta

import jwt
import pytest

from sublet.auth.jwt_handler import InvalidToken, JWTHandler
from sublet.errors import InvalidInput


@pytest.fixture
def handler(clock):
    return JWTHandler("unit-test-secret", clock=clock)


class TestIssueAndVerify:
    """Test the token round trip."""

    def test_round_trip(self, handler, clock):
        token = handler.issue("user-1", "user")
        payload = handler.verify(token)

        assert payload.subject_id == "user-1"
        assert payload.role == "user"
        assert payload.issued_at == clock.now
        assert payload.expires_at == clock.now + timedelta(days=7)

    def test_admin_role_carried(self, handler):
        payload = handler.verify(handler.issue("user-2", "admin"))
        assert payload.role == "admin"

    def test_empty_subject_rejected(self, handler):
        with pytest.raises(InvalidInput):
            handler.issue("", "user")

    def test_empty_role_rejected(self, handler):
        with pytest.raises(InvalidInput):
            handler.issue("user-1", "")

    def test_missing_secret_rejected(self):
        with pytest.raises(ValueError):
            JWTHandler("")


class TestExpiry:
    """Tokens live exactly seven days."""

    def test_valid_just_before_expiry(self, handler, clock):
        token = handler.issue("user-1", "user")
        clock.advance(days=7, seconds=-1)

        assert handler.verify(token).subject_id == "user-1"

    def test_expired_at_ttl(self, handler, clock):
        token = handler.issue("user-1", "user")
        clock.advance(days=7)

        with pytest.raises(InvalidToken):
            handler.verify(token)

    def test_expired_after_ttl(self, handler, clock):
        token = handler.issue("user-1", "user")
        clock.advance(days=7, seconds=1)

        with pytest.raises(InvalidToken):
            handler.verify(token)


class TestRejection:
    """Tampered or foreign tokens never verify."""

    def test_tampered_signature(self, handler):
        token = handler.issue("user-1", "user")
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

        with pytest.raises(InvalidToken):
            handler.verify(".".join([header, payload, flipped]))

    def test_wrong_secret(self, handler, clock):
        other = JWTHandler("another-secret", clock=clock)
        with pytest.raises(InvalidToken):
            handler.verify(other.issue("user-1", "user"))

    def test_garbage_token(self, handler):
        with pytest.raises(InvalidToken):
            handler.verify("not.a.token")

    def test_empty_token(self, handler):
        with pytest.raises(InvalidToken):
            handler.verify("")

    def test_wrong_token_type(self, handler, clock):
        now = int(clock.now.timestamp())
        token = jwt.encode(
            {"sub": "user-1", "role": "user", "iat": now, "exp": now + 60, "type": "refresh"},
            "unit-test-secret",
            algorithm="HS256",
        )
        with pytest.raises(InvalidToken):
            handler.verify(token)

    def test_missing_claims(self, handler):
        token = jwt.encode({"sub": "user-1", "type": "access"}, "unit-test-secret", algorithm="HS256")
        with pytest.raises(InvalidToken):
            handler.verify(token)
