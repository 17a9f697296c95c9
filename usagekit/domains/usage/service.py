"""Usage service: customer-facing metering operations.

Each call resolves the effective feature for a customer, authorizes the
caller and then reads or appends through the ledger. The service holds no
per-stream state of its own; serialization lives in the ledger.
"""

import asyncio
import inspect
import logging
from datetime import timezone, tzinfo
from typing import Any, Callable, List, Optional

from usagekit.core.context import RequestContext
from usagekit.core.exceptions import UsageKitException
from usagekit.core.logging import ContextualLogger
from usagekit.core.logging import logger as base_logger
from usagekit.domains.customers.exceptions import CustomerNotFoundError
from usagekit.domains.customers.protocols import CustomerRepositoryProtocol
from usagekit.domains.features.protocols import FeatureResolverProtocol
from usagekit.domains.features.types import (
    AuthorizationRequest,
    Feature,
    UsageAmounts,
    UsageHookContext,
)
from usagekit.domains.usage.exceptions import (
    HookFailedError,
    ReservedEventError,
    UnauthorizedError,
)
from usagekit.domains.usage.protocols import UsageLedgerProtocol, UsageServiceProtocol
from usagekit.domains.usage.types import (
    LimitStatus,
    ResetPolicy,
    SyncReason,
    SyncResult,
    UsageDraft,
    evaluate_limit,
)
from usagekit.schemas.customer import Customer, CustomerCreate
from usagekit.schemas.feature import FeatureSummary, FeatureView
from usagekit.schemas.usage_event import DEFAULT_EVENT, RESET_EVENT, UsageEvent

logger = logging.getLogger(__name__)


async def _invoke(fn: Callable[..., Any], arg: Any) -> Any:
    """Call a user callable that may be sync or async."""
    result = fn(arg)
    if inspect.isawaitable(result):
        result = await result
    return result


class UsageService(UsageServiceProtocol):
    """Consume, check and sync usage for registered customers."""

    def __init__(
        self,
        resolver: FeatureResolverProtocol,
        ledger: UsageLedgerProtocol,
        customers: CustomerRepositoryProtocol,
        *,
        tz: tzinfo = timezone.utc,
        require_principal: bool = True,
    ) -> None:
        """Initialize the service with its collaborators."""
        self._resolver = resolver
        self._ledger = ledger
        self._customers = customers
        self._tz = tz
        self._require_principal = require_principal

    # ------------------------------------------------------------------
    # Metering
    # ------------------------------------------------------------------

    async def consume(
        self,
        reference_id: str,
        feature_key: str,
        amount: float,
        *,
        override_key: Optional[str] = None,
        event: str = DEFAULT_EVENT,
        ctx: Optional[RequestContext] = None,
    ) -> UsageEvent:
        """Record a consumption of *amount* and return the stored event.

        Raises:
            ReservedEventError: if *event* is the reset tag.
            CustomerNotFoundError: if the customer is not registered.
            FeatureNotFoundError: if the feature is not registered.
            UnauthorizedError: if the caller or the feature's predicate refuses.
            HookFailedError: if the before-hook fails with a foreign exception.
            UsageConflictError: if concurrent appends kept winning the race.
        """
        if event == RESET_EVENT:
            raise ReservedEventError(event)

        customer = await self._get_customer(reference_id)
        feature = self._resolve(customer, feature_key, override_key)
        await self._authorize(
            ctx,
            customer,
            feature,
            operation="consume",
            override_key=override_key,
            amount=amount,
            event=event,
        )
        log = self._logger(ctx, reference_id, feature_key)

        before_commit = None
        hooks = feature.hooks
        if hooks is not None and hooks.before is not None:
            before = hooks.before

            async def run_before_hook(usage: UsageAmounts) -> None:
                try:
                    await _invoke(before, UsageHookContext(customer, usage, feature))
                except UsageKitException:
                    raise
                except Exception as e:
                    log.warning("Before-hook failed: %s", e)
                    raise HookFailedError("before", feature.key) from e

            before_commit = run_before_hook

        draft = UsageDraft(
            reference_id=customer.reference_id,
            reference_type=customer.reference_type,
            feature_key=feature.key,
            amount=amount,
            event=event,
        )
        stored = await self._ledger.append(
            draft, ResetPolicy.from_feature(feature, self._tz), before_commit=before_commit
        )
        log.debug("Recorded %s %s -> %s", event, amount, stored.after_amount)

        if hooks is not None and hooks.after is not None:
            usage = UsageAmounts(
                amount=stored.amount,
                before_amount=stored.before_amount,
                after_amount=stored.after_amount,
            )
            try:
                await _invoke(hooks.after, UsageHookContext(customer, usage, feature))
            except Exception:
                log.error("After-hook failed", exc_info=True)

        return stored

    async def check(
        self,
        reference_id: str,
        feature_key: str,
        *,
        override_key: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
    ) -> LimitStatus:
        """Evaluate the stream's current cumulative value against its limits."""
        customer = await self._get_customer(reference_id)
        feature = self._resolve(customer, feature_key, override_key)
        await self._authorize(ctx, customer, feature, operation="check", override_key=override_key)

        latest = await self._ledger.latest(customer.reference_id, feature.key)
        value = latest.after_amount if latest is not None else 0
        return evaluate_limit(feature.min_limit, feature.max_limit, value)

    async def sync(
        self,
        reference_id: str,
        feature_key: str,
        *,
        override_key: Optional[str] = None,
    ) -> SyncResult:
        """Append a reset row if the stream's reset boundary has passed.

        Calling it again within the same period appends nothing.
        """
        customer = await self._get_customer(reference_id)
        feature = self._resolve(customer, feature_key, override_key)
        if not feature.resets:
            return SyncResult(reset=False, reason=SyncReason.NO_RESET)

        row = await self._ledger.append_reset(
            customer.reference_id,
            customer.reference_type,
            feature.key,
            ResetPolicy.from_feature(feature, self._tz),
        )
        if row is None:
            return SyncResult(reset=False, reason=SyncReason.NOT_DUE)

        logger.info(
            "Reset %s for %s to %s (boundary %s)",
            feature.key,
            customer.reference_id,
            row.after_amount,
            row.reset_boundary,
        )
        return SyncResult(reset=True, usage=row)

    # ------------------------------------------------------------------
    # Customers and features
    # ------------------------------------------------------------------

    async def register_customer(self, customer: CustomerCreate) -> Customer:
        """Create or update a customer, then sync every feature for it.

        A failed feature sync is logged and does not fail the registration.
        """
        stored = await self._customers.upsert(customer)
        features = self._resolver.features()
        results = await asyncio.gather(
            *(self.sync(stored.reference_id, f.key) for f in features),
            return_exceptions=True,
        )
        for feature, result in zip(features, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Initial sync of %s for %s failed: %s",
                    feature.key,
                    stored.reference_id,
                    result,
                    exc_info=result,
                )
        return stored

    async def list_customers(self) -> List[Customer]:
        """All registered customers."""
        return await self._customers.list()

    async def list_features(self) -> List[FeatureSummary]:
        """Key and details of every registered feature."""
        return [
            FeatureSummary(feature_key=f.key, details=list(f.details))
            for f in self._resolver.features()
        ]

    async def get_feature(
        self,
        feature_key: str,
        *,
        override_key: Optional[str] = None,
        reference_id: Optional[str] = None,
        ctx: Optional[RequestContext] = None,
    ) -> FeatureView:
        """Effective feature, with customer overrides when *reference_id* is given.

        With a reference id the caller is authorized as for ``check``.
        """
        if reference_id is None:
            return self._resolver.resolve(feature_key, override_key).to_view()

        customer = await self._get_customer(reference_id)
        feature = self._resolve(customer, feature_key, override_key)
        await self._authorize(
            ctx, customer, feature, operation="get_feature", override_key=override_key
        )
        return feature.to_view()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _get_customer(self, reference_id: str) -> Customer:
        customer = await self._customers.get(reference_id)
        if customer is None:
            raise CustomerNotFoundError(reference_id)
        return customer

    def _resolve(
        self, customer: Customer, feature_key: str, override_key: Optional[str]
    ) -> Feature:
        return self._resolver.resolve(
            feature_key,
            override_key if override_key is not None else customer.override_key,
            customer.feature_limits.get(feature_key),
        )

    async def _authorize(
        self,
        ctx: Optional[RequestContext],
        customer: Customer,
        feature: Feature,
        *,
        operation: str,
        override_key: Optional[str] = None,
        amount: Optional[float] = None,
        event: Optional[str] = None,
    ) -> None:
        """Raise UnauthorizedError unless the caller may act on *feature*."""
        if self._require_principal and (ctx is None or not ctx.is_authenticated):
            raise UnauthorizedError()

        if feature.authorize is None:
            return
        request = AuthorizationRequest(
            customer=customer,
            feature_key=feature.key,
            operation=operation,
            principal=ctx.principal if ctx is not None else None,
            override_key=override_key,
            amount=amount,
            event=event,
        )
        if not await _invoke(feature.authorize, request):
            self._logger(ctx, customer.reference_id, feature.key).info(
                "Authorize predicate refused %s", operation
            )
            raise UnauthorizedError(feature.key)

    @staticmethod
    def _logger(
        ctx: Optional[RequestContext], reference_id: str, feature_key: str
    ) -> ContextualLogger:
        source = ctx.logger if ctx is not None else base_logger
        return source.with_context(reference_id=reference_id, feature_key=feature_key)
