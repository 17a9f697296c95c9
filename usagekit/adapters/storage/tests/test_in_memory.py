"""Tests for the in-memory storage adapters."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from usagekit.adapters.storage.in_memory import (
    InMemoryCustomerRepository,
    InMemoryUsageEventRepository,
)
from usagekit.domains.customers.protocols import CustomerRepositoryProtocol
from usagekit.domains.usage.exceptions import UsageConflictError
from usagekit.domains.usage.ledger import UsageLedger
from usagekit.domains.usage.types import ResetPolicy, UsageDraft
from usagekit.schemas.customer import CustomerCreate
from usagekit.schemas.feature import FeatureLimitOverride
from usagekit.schemas.usage_event import StreamKey, UsageEventCreate

STREAM = StreamKey("org_1", "messages")


def _row(sequence: int, after_amount: float = 1) -> UsageEventCreate:
    return UsageEventCreate(
        reference_id="org_1",
        reference_type="org",
        feature_key="messages",
        amount=1,
        before_amount=after_amount - 1,
        after_amount=after_amount,
        sequence=sequence,
        created_at=datetime(2024, 5, 15, tzinfo=timezone.utc) + timedelta(seconds=sequence),
    )


class TestInMemoryUsageEventRepository:
    @pytest.mark.asyncio
    async def test_rows_visible_after_commit_only(self):
        repo = InMemoryUsageEventRepository()

        async with repo.transaction(STREAM) as txn:
            await txn.insert(_row(1))
            assert await repo.find_latest(STREAM) is None

        assert (await repo.find_latest(STREAM)).sequence == 1

    @pytest.mark.asyncio
    async def test_out_of_order_sequence_is_conflict(self):
        repo = InMemoryUsageEventRepository()

        with pytest.raises(UsageConflictError):
            async with repo.transaction(STREAM) as txn:
                await txn.insert(_row(2))

        assert await repo.list_stream(STREAM) == []

    @pytest.mark.asyncio
    async def test_stale_writer_is_conflict(self):
        repo = InMemoryUsageEventRepository()

        with pytest.raises(UsageConflictError):
            async with repo.transaction(STREAM) as slow:
                await slow.insert(_row(1))
                async with repo.transaction(STREAM) as fast:
                    await fast.insert(_row(1))

        assert [r.after_amount for r in await repo.list_stream(STREAM)] == [1]

    @pytest.mark.asyncio
    async def test_exception_discards_staged_rows(self):
        repo = InMemoryUsageEventRepository()

        with pytest.raises(RuntimeError):
            async with repo.transaction(STREAM) as txn:
                await txn.insert(_row(1))
                raise RuntimeError("abort")

        assert await repo.find_latest(STREAM) is None

    @pytest.mark.asyncio
    async def test_find_latest_by_event(self):
        repo = InMemoryUsageEventRepository()
        async with repo.transaction(STREAM) as txn:
            await txn.insert(_row(1))
            await txn.insert(_row(2, after_amount=2))

        assert (await repo.find_latest(STREAM, event="use")).sequence == 2
        assert await repo.find_latest(STREAM, event="reset") is None
        assert [r.sequence for r in await repo.list_stream(STREAM, limit=1)] == [1]

    @pytest.mark.asyncio
    async def test_concurrent_ledger_appends(self):
        repo = InMemoryUsageEventRepository()
        ledger = UsageLedger(repo, max_wait_seconds=0)
        draft = UsageDraft(
            reference_id="org_1", reference_type="org", feature_key="messages", amount=1
        )

        await asyncio.gather(*(ledger.append(draft, ResetPolicy()) for _ in range(20)))

        latest = await repo.find_latest(STREAM)
        assert latest.after_amount == 20
        assert latest.sequence == 20


class TestInMemoryCustomerRepository:
    @pytest.mark.asyncio
    async def test_satisfies_protocol(self):
        assert isinstance(InMemoryCustomerRepository(), CustomerRepositoryProtocol)

    @pytest.mark.asyncio
    async def test_preregistered_customers(self):
        repo = InMemoryCustomerRepository([CustomerCreate(reference_id="a", reference_type="user")])

        assert (await repo.get("a")).reference_type == "user"

    @pytest.mark.asyncio
    async def test_upsert_keeps_identity(self):
        repo = InMemoryCustomerRepository()
        first = await repo.upsert(CustomerCreate(reference_id="a", reference_type="user"))

        second = await repo.upsert(
            CustomerCreate(
                reference_id="a",
                reference_type="user",
                feature_limits={"messages": FeatureLimitOverride(max_limit=3)},
            )
        )

        assert second.id == first.id
        assert second.created_at == first.created_at
        assert second.feature_limits["messages"].model_fields_set == {"max_limit"}
        assert [c.reference_id for c in await repo.list()] == ["a"]
