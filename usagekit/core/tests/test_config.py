"""Tests for settings parsing."""

from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from usagekit.core.config import Settings, StorageBackendType


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("USAGEKIT_STORAGE_BACKEND", raising=False)

        settings = Settings(_env_file=None)

        assert settings.STORAGE_BACKEND == StorageBackendType.MEMORY
        assert settings.RESET_TIMEZONE == "UTC"
        assert settings.LEDGER_MAX_ATTEMPTS == 5
        assert settings.REQUIRE_PRINCIPAL is True

    def test_database_uri_assembled_from_parts(self, monkeypatch):
        monkeypatch.setenv("USAGEKIT_POSTGRES_HOST", "db")
        monkeypatch.setenv("USAGEKIT_POSTGRES_USER", "meter")
        monkeypatch.setenv("USAGEKIT_POSTGRES_PASSWORD", "secret")
        monkeypatch.setenv("USAGEKIT_POSTGRES_DB", "usage")
        monkeypatch.delenv("USAGEKIT_DATABASE_URL", raising=False)

        settings = Settings(_env_file=None)

        assert settings.SQLALCHEMY_ASYNC_DATABASE_URI == (
            "postgresql+asyncpg://meter:secret@db:5432/usage"
        )

    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("USAGEKIT_DATABASE_URL", "sqlite+aiosqlite:///usage.db")

        settings = Settings(_env_file=None)

        assert settings.SQLALCHEMY_ASYNC_DATABASE_URI == "sqlite+aiosqlite:///usage.db"

    def test_reset_timezone(self, monkeypatch):
        monkeypatch.setenv("USAGEKIT_RESET_TIMEZONE", "Europe/Berlin")

        assert Settings(_env_file=None).reset_tz == ZoneInfo("Europe/Berlin")

    def test_unknown_timezone_rejected(self, monkeypatch):
        monkeypatch.setenv("USAGEKIT_RESET_TIMEZONE", "Mars/Olympus_Mons")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)
