"""Usage ledger: the only writer of usage events.

Every append is a read-modify-write over one stream. The ledger re-reads the
latest row inside a storage transaction, applies a due reset, computes the
new cumulative value and inserts the row with the next sequence number.
Appends to one stream are serialized by a per-stream lock inside this
process; across processes the storage's unique sequence constraint turns a
lost race into ``UsageConflictError``, and the unit is retried.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Dict, List, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from usagekit.core.exceptions import InvalidStateError
from usagekit.domains.features.types import UsageAmounts
from usagekit.domains.usage.exceptions import UsageConflictError
from usagekit.domains.usage.protocols import BeforeCommit, UsageLedgerProtocol
from usagekit.domains.usage.repository import UsageEventRepositoryProtocol
from usagekit.domains.usage.schedule import is_due
from usagekit.domains.usage.types import ResetPolicy, UsageDraft
from usagekit.schemas.usage_event import (
    RESET_EVENT,
    StreamKey,
    UsageEvent,
    UsageEventCreate,
)

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _next_created_at(previous: Optional[UsageEvent], now: datetime) -> datetime:
    """Keep created_at strictly increasing within a stream."""
    if previous is not None and now <= previous.created_at:
        return previous.created_at + _TICK
    return now


def _previous_total(previous: Optional[UsageEvent]) -> float:
    return previous.after_amount if previous is not None else 0


def _previous_marker(previous: Optional[UsageEvent]) -> Optional[datetime]:
    return previous.reset_boundary if previous is not None else None


def build_usage_event(
    previous: Optional[UsageEvent],
    draft: UsageDraft,
    policy: ResetPolicy,
    now: datetime,
) -> UsageEventCreate:
    """Compute the row that follows *previous* for a caller's draft.

    A due reset rebases the cumulative value on ``policy.reset_value`` and
    records the upcoming boundary as the stream's marker.
    """
    decision = is_due(_previous_marker(previous), policy.cadence, now, policy.tz)
    if decision.due:
        base = policy.reset_value
        marker = decision.upcoming_boundary
    else:
        base = _previous_total(previous)
        marker = _previous_marker(previous)

    return UsageEventCreate(
        reference_id=draft.reference_id,
        reference_type=draft.reference_type,
        feature_key=draft.feature_key,
        event=draft.event,
        amount=draft.amount,
        before_amount=_previous_total(previous),
        after_amount=base + draft.amount,
        reset_boundary=marker,
        sequence=previous.sequence + 1 if previous is not None else 1,
        created_at=_next_created_at(previous, now),
    )


def build_reset_event(
    previous: Optional[UsageEvent],
    stream: StreamKey,
    reference_type: str,
    policy: ResetPolicy,
    now: datetime,
) -> Optional[UsageEventCreate]:
    """Compute a zero-amount reset row, or None if no reset is due."""
    decision = is_due(_previous_marker(previous), policy.cadence, now, policy.tz)
    if not decision.due:
        return None
    return UsageEventCreate(
        reference_id=stream.reference_id,
        reference_type=reference_type,
        feature_key=stream.feature_key,
        event=RESET_EVENT,
        amount=0,
        before_amount=_previous_total(previous),
        after_amount=policy.reset_value,
        reset_boundary=decision.upcoming_boundary,
        sequence=previous.sequence + 1 if previous is not None else 1,
        created_at=_next_created_at(previous, now),
    )


class UsageLedger(UsageLedgerProtocol):
    """Serialized, retrying writer over a usage event repository.

    Thread-safe within one event loop via per-stream locks. Owns no
    sessions; the repository opens one per transaction.
    """

    def __init__(
        self,
        repo: UsageEventRepositoryProtocol,
        *,
        max_attempts: int = 5,
        max_wait_seconds: float = 0.5,
        clock: Clock = _utcnow,
    ) -> None:
        """Initialize the ledger with its repository and retry budget."""
        self._repo = repo
        self._max_attempts = max_attempts
        self._max_wait = max_wait_seconds
        self._clock = clock

        self._locks: Dict[StreamKey, asyncio.Lock] = {}

    def _get_lock(self, stream: StreamKey) -> asyncio.Lock:
        if stream not in self._locks:
            self._locks[stream] = asyncio.Lock()
        return self._locks[stream]

    async def latest(
        self, reference_id: str, feature_key: str, event: Optional[str] = None
    ) -> Optional[UsageEvent]:
        """Most recent event of a stream, optionally only events tagged *event*."""
        return await self._repo.find_latest(StreamKey(reference_id, feature_key), event=event)

    async def history(
        self, reference_id: str, feature_key: str, limit: Optional[int] = None
    ) -> List[UsageEvent]:
        """Events of a stream, oldest first."""
        return await self._repo.list_stream(StreamKey(reference_id, feature_key), limit=limit)

    async def append(
        self,
        draft: UsageDraft,
        policy: ResetPolicy,
        *,
        before_commit: Optional[BeforeCommit] = None,
    ) -> UsageEvent:
        """Append a usage event.

        ``before_commit`` receives the amounts about to be committed and may
        abort the append by raising. It runs again if the unit is retried.
        """
        stream = StreamKey(draft.reference_id, draft.feature_key)

        async def build(previous: Optional[UsageEvent]) -> UsageEventCreate:
            row = build_usage_event(previous, draft, policy, self._clock())
            if before_commit is not None:
                await before_commit(
                    UsageAmounts(
                        amount=row.amount,
                        before_amount=row.before_amount,
                        after_amount=row.after_amount,
                    )
                )
            return row

        event = await self._commit(stream, build)
        if event is None:
            raise InvalidStateError(f"Append on {stream} produced no usage event")
        return event

    async def append_reset(
        self,
        reference_id: str,
        reference_type: str,
        feature_key: str,
        policy: ResetPolicy,
    ) -> Optional[UsageEvent]:
        """Append a reset row if the scheduler says one is due."""
        stream = StreamKey(reference_id, feature_key)

        async def build(previous: Optional[UsageEvent]) -> Optional[UsageEventCreate]:
            return build_reset_event(previous, stream, reference_type, policy, self._clock())

        return await self._commit(stream, build)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _commit(
        self,
        stream: StreamKey,
        build: Callable[[Optional[UsageEvent]], Awaitable[Optional[UsageEventCreate]]],
    ) -> Optional[UsageEvent]:
        """Run one read-modify-write unit under the stream lock, retrying conflicts."""
        async with self._get_lock(stream):
            try:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self._max_attempts),
                    wait=wait_exponential(multiplier=0.01, max=self._max_wait),
                    retry=retry_if_exception_type(UsageConflictError),
                    reraise=True,
                ):
                    with attempt:
                        if attempt.retry_state.attempt_number > 1:
                            logger.debug(
                                "Retrying append on %s (attempt %d)",
                                stream,
                                attempt.retry_state.attempt_number,
                            )
                        async with self._repo.transaction(stream) as txn:
                            previous = await txn.latest()
                            row = await build(previous)
                            if row is None:
                                return None
                            event = await txn.insert(row)
                        return event
            except UsageConflictError:
                logger.warning(
                    "Usage append on %s still conflicting after %d attempts",
                    stream,
                    self._max_attempts,
                )
                raise
        return None
