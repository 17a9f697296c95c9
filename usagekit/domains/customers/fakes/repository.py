"""Fake customer repository for testing."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from usagekit.schemas.customer import Customer, CustomerCreate


class FakeCustomerRepository:
    """In-memory fake for CustomerRepositoryProtocol."""

    def __init__(self) -> None:
        """Initialize with empty store and call log."""
        self._store: dict[str, Customer] = {}
        self._calls: list[tuple] = []

    def seed(self, customer: Customer) -> None:
        """Populate store with test data."""
        self._store[customer.reference_id] = customer

    async def get(self, reference_id: str) -> Optional[Customer]:
        """Get a customer by reference id."""
        self._calls.append(("get", reference_id))
        return self._store.get(reference_id)

    async def upsert(self, obj_in: CustomerCreate) -> Customer:
        """Store a customer built from *obj_in*."""
        self._calls.append(("upsert", obj_in.reference_id))
        now = datetime.now(timezone.utc)
        customer = Customer(
            id=uuid.uuid4(),
            created_at=now,
            modified_at=now,
            **obj_in.model_dump(exclude={"feature_limits"}),
            feature_limits=dict(obj_in.feature_limits),
        )
        self._store[customer.reference_id] = customer
        return customer

    async def list(self) -> list[Customer]:
        """All stored customers."""
        self._calls.append(("list",))
        return [c for c in self._store.values()]

    def call_count(self, method: str) -> int:
        """Number of recorded calls to *method*."""
        return sum(1 for call in self._calls if call[0] == method)
