"""
JWT token generation and validation.

Handles creation and verification of the signed identity tokens handed out
on login and registration.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from loguru import logger

from ..config import TOKEN_TTL_DAYS
from ..errors import InvalidInput


ALGORITHM = "HS256"
TOKEN_TYPE = "access"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InvalidToken(Exception):
    """Token signature, structure or lifetime check failed."""


@dataclass(frozen=True)
class TokenPayload:
    """
    Decoded JWT payload.

    Attributes:
        subject_id: Account identifier
        role: Role name carried by the token
        issued_at: Issued at timestamp
        expires_at: Expiration timestamp
    """
    subject_id: str
    role: str
    issued_at: datetime
    expires_at: datetime


class JWTHandler:
    """
    JWT token handler.

    Tokens are stateless: there is no revocation list, so a leaked token
    stays valid until it expires.
    """

    def __init__(
        self,
        secret_key: str,
        ttl: timedelta = timedelta(days=TOKEN_TTL_DAYS),
        algorithm: str = ALGORITHM,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize handler.

        Args:
            secret_key: Secret key for signing tokens
            ttl: Token lifetime (default: 7 days)
            algorithm: JWT algorithm (default: HS256)
            clock: Callable returning the current UTC time
        """
        if not secret_key:
            raise ValueError("A signing secret is required")

        self.secret_key = secret_key
        self.ttl = ttl
        self.algorithm = algorithm
        self.clock = clock or utc_now

    def issue(self, subject_id: str, role: str) -> str:
        """
        Create a signed access token.

        Args:
            subject_id: Account identifier
            role: Role name

        Returns:
            JWT token string

        Raises:
            InvalidInput: If subject_id or role is empty
        """
        if not subject_id or not role:
            raise InvalidInput("Subject id and role are required for token generation")

        now = self.clock()
        expire = now + self.ttl

        payload = {
            "sub": subject_id,
            "role": role,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            "type": TOKEN_TYPE,
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.debug(f"Access token issued for {subject_id} (role: {role})")

        return token

    def verify(self, token: str) -> TokenPayload:
        """
        Verify and decode a token.

        Expiry is checked against this handler's clock rather than the wall
        clock so it can be pinned in tests.

        Args:
            token: JWT token string

        Returns:
            TokenPayload of a valid token

        Raises:
            InvalidToken: If the signature, structure or lifetime is invalid
        """
        if not token:
            raise InvalidToken("Empty token")

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={
                    "require": ["sub", "iat", "exp"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            raise InvalidToken(str(e)) from e

        if payload.get("type") != TOKEN_TYPE:
            logger.warning("Token is not an access token")
            raise InvalidToken("Wrong token type")

        role = payload.get("role")
        subject_id = payload.get("sub")
        if not isinstance(role, str) or not role or not isinstance(subject_id, str):
            raise InvalidToken("Malformed token claims")

        try:
            issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidToken("Malformed token timestamps") from e

        if expires_at <= self.clock():
            logger.warning("Token has expired")
            raise InvalidToken("Token has expired")

        return TokenPayload(
            subject_id=subject_id,
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
        )
