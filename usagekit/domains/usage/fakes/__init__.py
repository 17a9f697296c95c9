"""Fake implementations for usage domain testing."""

from usagekit.domains.usage.fakes.ledger import FakeUsageLedger
from usagekit.domains.usage.fakes.repository import FakeUsageEventRepository

__all__ = ["FakeUsageEventRepository", "FakeUsageLedger"]
