"""
User authentication manager.

Combines the account repository, password hasher and JWT handler into the
login and registration flows.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import AuthenticationError, InvalidInput
from ..identifiers import new_id
from ..storage.repositories import AccountRepository
from ..validation import parse_model
from .jwt_handler import JWTHandler, utc_now
from .models import Account
from .passwords import CredentialHasher
from .permissions import Role


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class Registration(BaseModel):
    """Registration input; username and email are stored lower-cased."""

    model_config = ConfigDict(extra="ignore")

    username: str = Field(min_length=3, max_length=50)
    email: str
    password: str = Field(min_length=6)

    @field_validator("username", "email", mode="before")
    @classmethod
    def normalize(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email address")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Password cannot be blank")
        return value


@dataclass(frozen=True)
class LoginResult:
    """Token handed back on successful login or registration."""
    token: str
    account: Account

    def to_dict(self) -> dict:
        return {"success": True, "token": self.token, "user": self.account.to_public_dict()}


class UserManager:
    """
    User authentication manager.

    Provides:
    - Registration with hashed passwords
    - Login by username or email
    - Token issuance for the authenticated account
    """

    def __init__(
        self,
        accounts: AccountRepository,
        hasher: CredentialHasher,
        tokens: JWTHandler,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize manager.

        Args:
            accounts: Account repository
            hasher: Password hasher
            tokens: JWT handler used to issue tokens
            clock: Callable returning the current UTC time
        """
        self.accounts = accounts
        self.hasher = hasher
        self.tokens = tokens
        self.clock = clock or utc_now

    def register(self, username: str, email: str, password: str) -> LoginResult:
        """
        Create a user account and log it in.

        Raises:
            InvalidInput: On invalid fields or an already registered username/email
        """
        account = self.create_account(username, email, password, Role.USER)
        token = self.tokens.issue(account.id, account.role.value)
        return LoginResult(token=token, account=account)

    def create_account(self, username: str, email: str, password: str, role: Role) -> Account:
        """
        Validate and store a new account with the given role.

        Raises:
            InvalidInput: On invalid fields or an already registered username/email
        """
        data = parse_model(Registration, {"username": username, "email": email, "password": password})

        existing = self.accounts.find_by_identifier(data.email) or self.accounts.find_by_identifier(
            data.username
        )
        if existing is not None:
            if existing.email == data.email:
                raise InvalidInput("This email is already registered")
            raise InvalidInput("This username is already taken")

        account = Account(
            id=new_id(),
            username=data.username,
            email=data.email,
            password_hash=self.hasher.hash(data.password),
            role=role,
            created_at=self.clock(),
        )
        return self.accounts.create(account)

    def login(self, identifier: str, password: str) -> LoginResult:
        """
        Authenticate by email or username and return a token.

        Raises:
            InvalidInput: If either field is blank
            AuthenticationError: If the account is unknown or the password is wrong
        """
        if not identifier or not identifier.strip():
            raise InvalidInput("Please enter your email or username")
        if not password or not password.strip():
            raise InvalidInput("Please enter your password")

        account = self.accounts.find_by_identifier(identifier)
        if account is None:
            logger.warning(f"Login failed: account '{identifier}' not found")
            raise AuthenticationError()

        if not self.hasher.verify(password, account.password_hash):
            logger.warning(f"Login failed: invalid password for '{identifier}'")
            raise AuthenticationError()

        token = self.tokens.issue(account.id, account.role.value)
        now = self.clock()
        self.accounts.touch_login(account.id, now)
        account.last_login_at = now

        logger.info(f"User logged in: {account.username}")
        return LoginResult(token=token, account=account)
