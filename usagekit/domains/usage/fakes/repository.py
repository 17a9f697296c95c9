"""Fake usage event repository for testing."""

from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from usagekit.domains.usage.exceptions import UsageConflictError
from usagekit.schemas.usage_event import StreamKey, UsageEvent, UsageEventCreate


class _FakeStreamTransaction:
    def __init__(self, repo: FakeUsageEventRepository, stream: StreamKey) -> None:
        self._repo = repo
        self._stream = stream
        self.staged: list[UsageEvent] = []

    async def latest(self) -> Optional[UsageEvent]:
        self._repo._calls.append(("latest", self._stream))
        rows = self._repo._streams.get(self._stream)
        latest = rows[-1] if rows else None
        if self._repo.yield_on_read:
            # let a concurrent writer read the same row
            await asyncio.sleep(0)
        return latest

    async def insert(self, obj_in: UsageEventCreate) -> UsageEvent:
        self._repo._calls.append(("insert", self._stream, obj_in.sequence))
        event = UsageEvent(id=uuid.uuid4(), **obj_in.model_dump())
        self.staged.append(event)
        return event


class FakeUsageEventRepository:
    """In-memory fake for UsageEventRepositoryProtocol.

    Rows are applied when the transaction scope exits. A staged row whose
    sequence is not next in its stream raises UsageConflictError, like the
    unique constraint would.

    Usage:
        repo = FakeUsageEventRepository()
        repo.inject_conflicts(2)
        await ledger.append(draft, policy)  # succeeds on the third attempt

        assert repo.commits == 1
    """

    def __init__(self, *, yield_on_read: bool = False) -> None:
        """Initialize with empty streams and call log."""
        self._streams: dict[StreamKey, list[UsageEvent]] = {}
        self._calls: list[tuple] = []
        self._conflicts = 0
        self.yield_on_read = yield_on_read
        self.commits = 0
        self.rollbacks = 0

    def seed(self, *events: UsageEvent) -> None:
        """Populate streams with existing rows, in order."""
        for event in events:
            self._streams.setdefault(event.stream, []).append(event)

    def inject_conflicts(self, count: int) -> None:
        """Make the next *count* commits fail with UsageConflictError."""
        self._conflicts = count

    def rows(self, reference_id: str, feature_key: str) -> list[UsageEvent]:
        """Stored rows of a stream."""
        return list(self._streams.get(StreamKey(reference_id, feature_key), []))

    async def find_latest(
        self, stream: StreamKey, event: Optional[str] = None
    ) -> Optional[UsageEvent]:
        """Most recent row, optionally filtered by tag."""
        self._calls.append(("find_latest", stream, event))
        for row in reversed(self._streams.get(stream, [])):
            if event is None or row.event == event:
                return row
        return None

    async def list_stream(self, stream: StreamKey, limit: Optional[int] = None) -> list[UsageEvent]:
        """Rows of a stream, oldest first."""
        self._calls.append(("list_stream", stream, limit))
        rows = list(self._streams.get(stream, []))
        return rows[:limit] if limit is not None else rows

    @asynccontextmanager
    async def transaction(self, stream: StreamKey) -> AsyncIterator[_FakeStreamTransaction]:
        """Stage inserts; apply them on clean exit."""
        self._calls.append(("transaction", stream))
        txn = _FakeStreamTransaction(self, stream)
        try:
            yield txn
        except BaseException:
            self.rollbacks += 1
            raise
        if not txn.staged:
            return
        if self._conflicts > 0:
            self._conflicts -= 1
            self.rollbacks += 1
            raise UsageConflictError(str(stream))
        rows = self._streams.setdefault(stream, [])
        if txn.staged[0].sequence != len(rows) + 1:
            self.rollbacks += 1
            raise UsageConflictError(str(stream))
        rows.extend(txn.staged)
        self.commits += 1

    def call_count(self, method: str) -> int:
        """Number of recorded calls to *method*."""
        return sum(1 for call in self._calls if call[0] == method)
