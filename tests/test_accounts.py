"""
Unit tests for registration and login.
"""

import pytest

from sublet.auth.permissions import Role
from sublet.errors import AuthenticationError, InvalidInput, Unauthorized


class TestRegister:
    """Test account creation."""

    def test_register_returns_working_token(self, marketplace):
        result = marketplace.register("Dana", "Dana@Example.com", "hunter22")

        assert result.account.username == "dana"
        assert result.account.email == "dana@example.com"
        assert result.account.role is Role.USER
        assert marketplace.authenticate(f"Bearer {result.token}").id == result.account.id

    def test_public_dict_hides_hash(self, marketplace):
        data = marketplace.register("dana", "dana@example.com", "hunter22").to_dict()

        assert data["success"] is True
        assert "password_hash" not in data["user"]
        assert "passwordHash" not in data["user"]
        assert data["user"]["role"] == "user"

    def test_password_is_hashed(self, marketplace, context):
        account = marketplace.register("dana", "dana@example.com", "hunter22").account
        stored = context.accounts.get_by_id(account.id)

        assert stored.password_hash != "hunter22"
        assert context.hasher.verify("hunter22", stored.password_hash)

    def test_password_whitespace_kept(self, marketplace):
        marketplace.register("dana", "dana@example.com", " hunter22 ")

        assert marketplace.login("dana", " hunter22 ").account.username == "dana"
        with pytest.raises(AuthenticationError):
            marketplace.login("dana", "hunter22")

    def test_blank_password_rejected(self, marketplace):
        with pytest.raises(InvalidInput):
            marketplace.register("wsuser", "ws@example.com", "      ")
        with pytest.raises(AuthenticationError):
            marketplace.login("wsuser", "hunter22")

    def test_padded_password_round_trips(self, marketplace):
        marketplace.register("wsuser", "ws@example.com", "  pass  ")
        assert marketplace.login("wsuser", "  pass  ").account.username == "wsuser"

    def test_duplicate_email(self, marketplace):
        marketplace.register("dana", "dana@example.com", "hunter22")
        with pytest.raises(InvalidInput) as exc:
            marketplace.register("other", "DANA@example.com", "hunter22")
        assert "email" in exc.value.message

    def test_duplicate_username(self, marketplace):
        marketplace.register("dana", "dana@example.com", "hunter22")
        with pytest.raises(InvalidInput) as exc:
            marketplace.register("Dana", "other@example.com", "hunter22")
        assert "username" in exc.value.message

    @pytest.mark.parametrize(
        "username,email,password",
        [
            ("ab", "ab@example.com", "hunter22"),
            ("x" * 51, "x@example.com", "hunter22"),
            ("dana", "not-an-email", "hunter22"),
            ("dana", "dana@example.com", "short"),
        ],
    )
    def test_invalid_fields(self, marketplace, username, email, password):
        with pytest.raises(InvalidInput):
            marketplace.register(username, email, password)


class TestLogin:
    """Test login by email or username."""

    @pytest.fixture(autouse=True)
    def dana(self, marketplace):
        return marketplace.register("dana", "dana@example.com", "hunter22").account

    def test_login_by_username(self, marketplace, dana):
        result = marketplace.login("dana", "hunter22")
        assert result.account.id == dana.id

    def test_login_by_email_any_case(self, marketplace, dana):
        result = marketplace.login("DANA@example.com", "hunter22")
        assert result.account.id == dana.id

    def test_login_records_time(self, marketplace, context, dana, clock):
        clock.advance(hours=2)
        marketplace.login("dana", "hunter22")

        assert context.accounts.get_by_id(dana.id).last_login_at == clock.now

    def test_wrong_password(self, marketplace):
        with pytest.raises(AuthenticationError):
            marketplace.login("dana", "wrong-password")

    def test_unknown_account(self, marketplace):
        with pytest.raises(AuthenticationError):
            marketplace.login("nobody", "hunter22")

    def test_authentication_error_is_unauthorized(self, marketplace):
        with pytest.raises(Unauthorized):
            marketplace.login("nobody", "hunter22")

    @pytest.mark.parametrize("identifier,password", [("", "hunter22"), ("dana", ""), ("  ", "x")])
    def test_blank_fields(self, marketplace, identifier, password):
        with pytest.raises(InvalidInput):
            marketplace.login(identifier, password)


class TestCreateAdmin:
    """Admins are created through create_account."""

    def test_admin_role(self, marketplace):
        account = marketplace.users.create_account("boss", "boss@example.com", "hunter22", Role.ADMIN)
        result = marketplace.login("boss", "hunter22")

        assert account.role is Role.ADMIN
        assert marketplace.authenticate(f"Bearer {result.token}").is_admin
