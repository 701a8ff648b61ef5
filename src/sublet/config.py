"""
Process configuration.

Settings are read once at start-up from the environment. The JWT signing
secret may be given directly or through a file, by default
``data/.jwt_secret`` next to the database.
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional

from loguru import logger


PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_DB_PATH = PROJECT_ROOT / "data" / "sublet.db"
DEFAULT_SECRET_FILE = PROJECT_ROOT / "data" / ".jwt_secret"

TOKEN_TTL_DAYS = 7
BCRYPT_ROUNDS = 12


class ConfigError(ValueError):
    """Raised when the environment does not describe a usable configuration."""


@dataclass(frozen=True)
class Settings:
    """
    Immutable process-wide settings.

    Attributes:
        jwt_secret: Secret used to sign identity tokens
        db_path: Path to the SQLite database file
        token_ttl: Lifetime of an issued token
        bcrypt_rounds: bcrypt cost factor
        db_timeout: Seconds to wait on a locked database before failing
        host: HTTP bind address
        port: HTTP port
        log_level: Minimum loguru level for the stderr sink
    """
    jwt_secret: str
    db_path: Path = DEFAULT_DB_PATH
    token_ttl: timedelta = timedelta(days=TOKEN_TTL_DAYS)
    bcrypt_rounds: int = BCRYPT_ROUNDS
    db_timeout: float = 5.0
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read from (defaults to ``os.environ``)

        Raises:
            ConfigError: If no secret is configured or a number is malformed
        """
        if env is None:
            env = os.environ

        secret = env.get("SUBLET_JWT_SECRET", "").strip()
        if not secret:
            secret_file = Path(env.get("SUBLET_JWT_SECRET_FILE", str(DEFAULT_SECRET_FILE)))
            secret = load_secret_file(secret_file) or ""
        if not secret:
            raise ConfigError("SUBLET_JWT_SECRET is not set and no secret file was found")

        try:
            ttl_days = int(env.get("SUBLET_TOKEN_TTL_DAYS", TOKEN_TTL_DAYS))
            rounds = int(env.get("SUBLET_BCRYPT_ROUNDS", BCRYPT_ROUNDS))
            db_timeout = float(env.get("SUBLET_DB_TIMEOUT", 5.0))
            port = int(env.get("SUBLET_PORT", 8080))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        if ttl_days < 1:
            raise ConfigError("SUBLET_TOKEN_TTL_DAYS must be at least 1")
        if not 4 <= rounds <= 31:
            raise ConfigError("SUBLET_BCRYPT_ROUNDS must be between 4 and 31")

        db_path = env.get("SUBLET_DB_PATH")
        return cls(
            jwt_secret=secret,
            db_path=Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH,
            token_ttl=timedelta(days=ttl_days),
            bcrypt_rounds=rounds,
            db_timeout=db_timeout,
            host=env.get("SUBLET_HOST", "0.0.0.0"),
            port=port,
            log_level=env.get("SUBLET_LOG_LEVEL", "INFO").upper(),
        )


def load_secret_file(path: Path) -> Optional[str]:
    """Read a JWT secret from file, or None if the file does not exist."""
    if not path.exists():
        logger.debug(f"JWT secret file not found: {path}")
        return None
    return path.read_text(encoding="utf-8").strip() or None
