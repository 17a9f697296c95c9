"""Usage domain test fixtures and helpers."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from usagekit.core.context import RequestContext
from usagekit.core.logging import logger
from usagekit.domains.customers.fakes.repository import FakeCustomerRepository
from usagekit.domains.features.resolver import FeatureResolver
from usagekit.domains.features.types import Feature, PlanOverride
from usagekit.domains.usage.fakes.repository import FakeUsageEventRepository
from usagekit.domains.usage.ledger import UsageLedger
from usagekit.domains.usage.service import UsageService
from usagekit.schemas.customer import Customer
from usagekit.schemas.feature import ResetCadence
from usagekit.schemas.usage_event import UsageEvent

DEFAULT_REF = "cust_1"
DEFAULT_FEATURE = "api_calls"

# Wednesday, mid-morning UTC
T0 = datetime(2024, 5, 15, 10, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FrozenClock:
    """Manually advanced clock for the ledger."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def _make_ctx(principal: Any = "user_1") -> RequestContext:
    return RequestContext(
        principal=principal,
        request_id="test-req-001",
        logger=logger.with_context(request_id="test-req-001"),
    )


def _make_customer(reference_id: str = DEFAULT_REF, **overrides: Any) -> Customer:
    now = datetime.now(timezone.utc)
    defaults = dict(
        id=uuid.uuid4(),
        created_at=now,
        modified_at=now,
        reference_id=reference_id,
        reference_type="org",
        email="billing@example.com",
        name="Test Org",
    )
    defaults.update(overrides)
    return Customer(**defaults)


def _make_event(
    *,
    sequence: int,
    after_amount: float,
    amount: float = 1,
    reference_id: str = DEFAULT_REF,
    feature_key: str = DEFAULT_FEATURE,
    reset_boundary: Optional[datetime] = None,
    created_at: datetime = T0,
    event: str = "use",
) -> UsageEvent:
    return UsageEvent(
        id=uuid.uuid4(),
        reference_id=reference_id,
        reference_type="org",
        feature_key=feature_key,
        event=event,
        amount=amount,
        before_amount=after_amount - amount,
        after_amount=after_amount,
        reset_boundary=reset_boundary,
        sequence=sequence,
        created_at=created_at,
    )


def _make_feature(key: str = DEFAULT_FEATURE, **overrides: Any) -> Feature:
    return Feature(key=key, **overrides)


def _make_service(
    *features: Feature,
    overrides: Optional[dict[str, PlanOverride]] = None,
    customers: Optional[FakeCustomerRepository] = None,
    repo: Optional[FakeUsageEventRepository] = None,
    clock: Optional[FrozenClock] = None,
    require_principal: bool = True,
    seed_customer: bool = True,
) -> tuple[UsageService, FakeUsageEventRepository, FakeCustomerRepository, FrozenClock]:
    """Build a UsageService over a real ledger and fakes. Returns (service, *fakes)."""
    cr = customers or FakeCustomerRepository()
    ur = repo or FakeUsageEventRepository()
    ck = clock or FrozenClock()
    if seed_customer:
        cr.seed(_make_customer())
    resolver = FeatureResolver(features or [_make_feature()], overrides)
    ledger = UsageLedger(ur, max_attempts=3, max_wait_seconds=0, clock=ck)
    service = UsageService(resolver, ledger, cr, require_principal=require_principal)
    return service, ur, cr, ck


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ctx():
    return _make_ctx()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def monthly_feature():
    return _make_feature(max_limit=1000, reset_cadence=ResetCadence.MONTHLY)
