"""Configuration module for usagekit.

Provides centralized configuration management with type-safe enums.

Usage:
    from usagekit.core.config import settings, StorageBackendType, Environment

    # Access settings
    if settings.STORAGE_BACKEND == StorageBackendType.POSTGRES:
        ...

    # Use enums for type safety
    if settings.ENVIRONMENT == Environment.PRD:
        ...
"""

from usagekit.core.config.enums import Environment, StorageBackendType
from usagekit.core.config.settings import Settings

__all__ = [
    "Settings",
    "StorageBackendType",
    "Environment",
    "settings",
]

# Singleton settings instance
settings = Settings()
