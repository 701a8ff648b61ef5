"""
One-way password hashing.

Thin wrapper around bcrypt so every caller hashes and verifies the same way.
"""

import bcrypt

from ..config import BCRYPT_ROUNDS
from ..errors import InvalidInput


# bcrypt only looks at the first 72 bytes of input
MAX_PASSWORD_BYTES = 72


class CredentialHasher:
    """
    Salted bcrypt hasher.

    Equal passwords hash to different values because every hash carries its
    own random salt.
    """

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        """
        Initialize hasher.

        Args:
            rounds: bcrypt cost factor (log2 of the iteration count)
        """
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a plain text password.

        Args:
            password: Plain text password

        Returns:
            bcrypt hash string

        Raises:
            InvalidInput: If the password is empty or longer than 72 bytes
        """
        if not password:
            raise InvalidInput("Password is required")

        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise InvalidInput(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")

        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, password: str, hashed_password: str) -> bool:
        """
        Compare a plain text password with a stored hash.

        Args:
            password: Plain text password
            hashed_password: Hash produced by :meth:`hash`

        Returns:
            True if the password matches, False otherwise

        Raises:
            InvalidInput: If either argument is empty
        """
        if not password or not hashed_password:
            raise InvalidInput("Both password and hash are required")

        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            # Unparseable hash, or an over-long password that can never have been stored
            return False
