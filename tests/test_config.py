"""
Unit tests for environment-driven settings.
"""

from datetime import timedelta
from pathlib import Path

import pytest

from sublet.config import DEFAULT_DB_PATH, ConfigError, Settings


class TestFromEnv:
    """Test Settings.from_env."""

    def test_minimal(self, tmp_path):
        settings = Settings.from_env(
            {"SUBLET_JWT_SECRET": "s3cret", "SUBLET_JWT_SECRET_FILE": str(tmp_path / "none")}
        )

        assert settings.jwt_secret == "s3cret"
        assert settings.token_ttl == timedelta(days=7)
        assert settings.bcrypt_rounds == 12
        assert settings.db_path == DEFAULT_DB_PATH
        assert settings.port == 8080

    def test_overrides(self, tmp_path):
        settings = Settings.from_env(
            {
                "SUBLET_JWT_SECRET": "s3cret",
                "SUBLET_DB_PATH": str(tmp_path / "x.db"),
                "SUBLET_TOKEN_TTL_DAYS": "1",
                "SUBLET_BCRYPT_ROUNDS": "6",
                "SUBLET_PORT": "9000",
                "SUBLET_HOST": "127.0.0.1",
                "SUBLET_LOG_LEVEL": "debug",
            }
        )

        assert settings.db_path == Path(tmp_path / "x.db")
        assert settings.token_ttl == timedelta(days=1)
        assert settings.bcrypt_rounds == 6
        assert settings.port == 9000
        assert settings.host == "127.0.0.1"
        assert settings.log_level == "DEBUG"

    def test_secret_from_file(self, tmp_path):
        secret_file = tmp_path / ".jwt_secret"
        secret_file.write_text("from-file\n", encoding="utf-8")

        settings = Settings.from_env({"SUBLET_JWT_SECRET_FILE": str(secret_file)})
        assert settings.jwt_secret == "from-file"

    def test_missing_secret(self, tmp_path):
        with pytest.raises(ConfigError):
            Settings.from_env({"SUBLET_JWT_SECRET_FILE": str(tmp_path / "missing")})

    @pytest.mark.parametrize(
        "key,value",
        [
            ("SUBLET_PORT", "http"),
            ("SUBLET_TOKEN_TTL_DAYS", "0"),
            ("SUBLET_BCRYPT_ROUNDS", "3"),
            ("SUBLET_BCRYPT_ROUNDS", "32"),
        ],
    )
    def test_bad_values(self, key, value):
        with pytest.raises(ConfigError):
            Settings.from_env({"SUBLET_JWT_SECRET": "s3cret", key: value})
