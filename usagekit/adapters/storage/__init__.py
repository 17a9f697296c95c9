"""Storage adapters."""

from usagekit.adapters.storage.in_memory import (
    InMemoryCustomerRepository,
    InMemoryUsageEventRepository,
)

__all__ = ["InMemoryCustomerRepository", "InMemoryUsageEventRepository"]
