"""Application settings loaded from the environment.

All variables use the ``USAGEKIT_`` prefix, e.g. ``USAGEKIT_RESET_TIMEZONE=Europe/Berlin``.
"""

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from usagekit.core.config.enums import Environment, StorageBackendType


class Settings(BaseSettings):
    """usagekit settings.

    ``SQLALCHEMY_ASYNC_DATABASE_URI`` is derived from the ``POSTGRES_*`` fields
    unless ``DATABASE_URL`` is given explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="USAGEKIT_",
        env_file=".env",
        extra="ignore",
    )

    ENVIRONMENT: Environment = Environment.LOCAL
    LOG_LEVEL: str = "INFO"

    STORAGE_BACKEND: StorageBackendType = StorageBackendType.MEMORY

    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "usagekit"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "usagekit"
    DATABASE_URL: Optional[str] = None
    SQLALCHEMY_ASYNC_DATABASE_URI: Optional[str] = None

    DB_POOL_SIZE: int = Field(10, gt=0)
    DB_POOL_MAX_OVERFLOW: int = Field(20, ge=0)

    RESET_TIMEZONE: str = Field(
        "UTC", description="IANA timezone in which reset boundaries fall at midnight"
    )

    LEDGER_MAX_ATTEMPTS: int = Field(
        5, gt=0, description="Read-modify-write attempts before a ledger conflict surfaces"
    )
    LEDGER_RETRY_MAX_WAIT_SECONDS: float = Field(0.5, ge=0)

    REQUIRE_PRINCIPAL: bool = Field(
        True, description="Reject consume/check calls that carry no authenticated principal"
    )

    @field_validator("RESET_TIMEZONE")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject timezone names zoneinfo does not know."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @model_validator(mode="after")
    def assemble_db_connection(self) -> "Settings":
        """Build the async database URI from its parts."""
        if self.SQLALCHEMY_ASYNC_DATABASE_URI:
            return self
        if self.DATABASE_URL:
            self.SQLALCHEMY_ASYNC_DATABASE_URI = self.DATABASE_URL
            return self
        self.SQLALCHEMY_ASYNC_DATABASE_URI = (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )
        return self

    @property
    def reset_tz(self) -> ZoneInfo:
        """Timezone object for boundary calculations."""
        return ZoneInfo(self.RESET_TIMEZONE)
