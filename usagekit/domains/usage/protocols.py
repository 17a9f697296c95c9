"""Usage domain protocols."""

from typing import Awaitable, Callable, List, Optional, Protocol, runtime_checkable

from usagekit.core.context import RequestContext
from usagekit.domains.features.types import UsageAmounts
from usagekit.domains.usage.types import LimitStatus, ResetPolicy, SyncResult, UsageDraft
from usagekit.schemas.customer import Customer, CustomerCreate
from usagekit.schemas.feature import FeatureSummary, FeatureView
from usagekit.schemas.usage_event import UsageEvent

BeforeCommit = Callable[[UsageAmounts], Awaitable[None]]


@runtime_checkable
class UsageLedgerProtocol(Protocol):
    """Append-only usage ledger, serialized per stream."""

    async def latest(
        self, reference_id: str, feature_key: str, event: Optional[str] = None
    ) -> Optional[UsageEvent]:
        """Most recent event of a stream, optionally only events tagged *event*."""
        ...

    async def history(
        self, reference_id: str, feature_key: str, limit: Optional[int] = None
    ) -> List[UsageEvent]:
        """Events of a stream, oldest first."""
        ...

    async def append(
        self,
        draft: UsageDraft,
        policy: ResetPolicy,
        *,
        before_commit: Optional[BeforeCommit] = None,
    ) -> UsageEvent:
        """Append a usage event, applying a due reset first."""
        ...

    async def append_reset(
        self,
        reference_id: str,
        reference_type: str,
        feature_key: str,
        policy: ResetPolicy,
    ) -> Optional[UsageEvent]:
        """Append a reset row if one is due; None otherwise."""
        ...


@runtime_checkable
class UsageServiceProtocol(Protocol):
    """Customer-facing metering operations."""

    async def consume(
        self,
        reference_id: str,
        feature_key: str,
        amount: float,
        *,
        override_key: Optional[str] = None,
        event: str = "use",
        ctx: Optional[RequestContext] = None,
    ) -> UsageEvent:
        """Record a consumption and return the stored event."""
        ...

    async def check(
        self,
        reference_id: str,
        feature_key: str,
        *,
        override_key: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
    ) -> LimitStatus:
        """Evaluate the current cumulative value against the effective limits."""
        ...

    async def sync(
        self,
        reference_id: str,
        feature_key: str,
        *,
        override_key: Optional[str] = None,
    ) -> SyncResult:
        """Append a reset row if the stream's reset is due."""
        ...

    async def register_customer(self, customer: CustomerCreate) -> Customer:
        """Create or update a customer and sync all features for it."""
        ...

    async def list_customers(self) -> List[Customer]:
        """All registered customers."""
        ...

    async def list_features(self) -> List[FeatureSummary]:
        """Key and details of every registered feature."""
        ...

    async def get_feature(
        self,
        feature_key: str,
        *,
        override_key: Optional[str] = None,
        reference_id: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
    ) -> FeatureView:
        """Serializable view of an effective feature."""
        ...
