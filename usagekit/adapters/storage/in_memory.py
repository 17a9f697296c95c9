"""In-memory storage adapters.

Suitable for single-process deployments and tests. For multi-process
deployments, use the SQLAlchemy repositories: the per-stream sequence check
here only protects writers sharing this object.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from usagekit.domains.customers.protocols import CustomerRepositoryProtocol
from usagekit.domains.usage.exceptions import UsageConflictError
from usagekit.domains.usage.repository import (
    UsageEventRepositoryProtocol,
    UsageStreamTransaction,
)
from usagekit.schemas.customer import Customer, CustomerCreate
from usagekit.schemas.usage_event import StreamKey, UsageEvent, UsageEventCreate


class _InMemoryStreamTransaction(UsageStreamTransaction):
    """Stages one insert; the repository validates and applies it on commit."""

    def __init__(self, repo: InMemoryUsageEventRepository, stream: StreamKey) -> None:
        self._repo = repo
        self._stream = stream
        self.staged: list[UsageEvent] = []

    async def latest(self) -> Optional[UsageEvent]:
        return await self._repo._read_latest(self._stream)

    async def insert(self, obj_in: UsageEventCreate) -> UsageEvent:
        expected = self._repo._next_sequence(self._stream) + len(self.staged)
        if obj_in.sequence != expected:
            raise UsageConflictError(str(self._stream))
        event = UsageEvent(id=uuid.uuid4(), **obj_in.model_dump())
        self.staged.append(event)
        return event


class InMemoryUsageEventRepository(UsageEventRepositoryProtocol):
    """Ledger storage in a dict of per-stream lists."""

    def __init__(self) -> None:
        """Initialize with no streams."""
        self._streams: dict[StreamKey, list[UsageEvent]] = {}

    async def find_latest(
        self, stream: StreamKey, event: Optional[str] = None
    ) -> Optional[UsageEvent]:
        """Most recent row of a stream, optionally only rows with tag *event*."""
        for row in reversed(self._streams.get(stream, [])):
            if event is None or row.event == event:
                return row
        return None

    async def list_stream(self, stream: StreamKey, limit: Optional[int] = None) -> list[UsageEvent]:
        """Rows of a stream, oldest first."""
        rows = list(self._streams.get(stream, []))
        return rows[:limit] if limit is not None else rows

    @asynccontextmanager
    async def transaction(self, stream: StreamKey) -> AsyncIterator[UsageStreamTransaction]:
        """Stage inserts and apply them only if nobody appended in between."""
        txn = _InMemoryStreamTransaction(self, stream)
        yield txn
        if not txn.staged:
            return
        rows = self._streams.setdefault(stream, [])
        if txn.staged[0].sequence != len(rows) + 1:
            raise UsageConflictError(str(stream))
        rows.extend(txn.staged)

    async def _read_latest(self, stream: StreamKey) -> Optional[UsageEvent]:
        rows = self._streams.get(stream)
        return rows[-1] if rows else None

    def _next_sequence(self, stream: StreamKey) -> int:
        return len(self._streams.get(stream, [])) + 1


class InMemoryCustomerRepository(CustomerRepositoryProtocol):
    """Customer store in a dict keyed by reference id.

    Constructed by the container factory at startup and discarded with it.
    """

    def __init__(self, customers: Optional[list[CustomerCreate]] = None) -> None:
        """Initialize, optionally pre-registering customers."""
        self._store: dict[str, Customer] = {}
        for obj_in in customers or []:
            self._put(obj_in)

    async def get(self, reference_id: str) -> Optional[Customer]:
        """Get a customer by reference id."""
        return self._store.get(reference_id)

    async def upsert(self, obj_in: CustomerCreate) -> Customer:
        """Create or replace a customer."""
        return self._put(obj_in)

    async def list(self) -> list[Customer]:
        """All registered customers, in registration order."""
        return list(self._store.values())

    def _put(self, obj_in: CustomerCreate) -> Customer:
        now = datetime.now(timezone.utc)
        existing = self._store.get(obj_in.reference_id)
        customer = Customer(
            id=existing.id if existing else uuid.uuid4(),
            created_at=existing.created_at if existing else now,
            modified_at=now,
            **obj_in.model_dump(exclude={"feature_limits"}),
            feature_limits=dict(obj_in.feature_limits),
        )
        self._store[obj_in.reference_id] = customer
        return customer
