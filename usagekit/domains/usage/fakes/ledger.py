"""Fake usage ledger for testing.

Records calls for assertions. Reads are served from rows given to ``seed``;
writes are not modelled. Use the real ``UsageLedger`` over a
``FakeUsageEventRepository`` to test accumulation.
"""

from __future__ import annotations

from typing import Optional

from usagekit.domains.usage.protocols import BeforeCommit, UsageLedgerProtocol
from usagekit.domains.usage.types import ResetPolicy, UsageDraft
from usagekit.schemas.usage_event import UsageEvent


class FakeUsageLedger(UsageLedgerProtocol):
    """Test implementation of UsageLedgerProtocol.

    Usage:
        ledger = FakeUsageLedger()
        ledger.fail_resets_for("api_calls", RuntimeError("db down"))
        await service.register_customer(customer)

        assert ("append_reset", "cust_1", "api_calls") in ledger.calls
    """

    def __init__(self) -> None:
        """Initialize empty recording state."""
        self._latest: dict[tuple[str, str], UsageEvent] = {}
        self._reset_failures: dict[str, BaseException] = {}
        self.calls: list[tuple] = []

    def seed(self, event: UsageEvent) -> None:
        """Make *event* the latest row of its stream."""
        self._latest[(event.reference_id, event.feature_key)] = event

    def fail_resets_for(self, feature_key: str, error: BaseException) -> None:
        """Make ``append_reset`` raise *error* for *feature_key*."""
        self._reset_failures[feature_key] = error

    async def latest(
        self, reference_id: str, feature_key: str, event: Optional[str] = None
    ) -> Optional[UsageEvent]:
        """Seeded latest row, if any."""
        self.calls.append(("latest", reference_id, feature_key))
        row = self._latest.get((reference_id, feature_key))
        if row is not None and event is not None and row.event != event:
            return None
        return row

    async def history(
        self, reference_id: str, feature_key: str, limit: Optional[int] = None
    ) -> list[UsageEvent]:
        """Seeded latest row as a one-element history."""
        self.calls.append(("history", reference_id, feature_key))
        row = self._latest.get((reference_id, feature_key))
        return [row] if row is not None else []

    async def append(
        self,
        draft: UsageDraft,
        policy: ResetPolicy,
        *,
        before_commit: Optional[BeforeCommit] = None,
    ) -> UsageEvent:
        """Not modelled."""
        raise NotImplementedError("FakeUsageLedger does not model appends")

    async def append_reset(
        self,
        reference_id: str,
        reference_type: str,
        feature_key: str,
        policy: ResetPolicy,
    ) -> Optional[UsageEvent]:
        """Record the call; raise a configured failure or report not due."""
        self.calls.append(("append_reset", reference_id, feature_key))
        error = self._reset_failures.get(feature_key)
        if error is not None:
            raise error
        return None
