"""Configuration enums for type-safe settings.

These enums provide type safety and IDE autocomplete for configuration values.
They inherit from str to maintain JSON serialization compatibility.
"""

from enum import Enum


class StorageBackendType(str, Enum):
    """Storage backend types.

    Determines where customers and the usage ledger are persisted.
    """

    MEMORY = "memory"
    POSTGRES = "postgres"


class Environment(str, Enum):
    """Deployment environments.

    Controls environment-specific behavior like logging and storage defaults.
    """

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"
