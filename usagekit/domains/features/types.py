"""Features domain types.

Feature definitions carry callables (authorize predicate, lifecycle hooks),
so they are plain in-process configuration, never persisted. Their
serializable projection is ``usagekit.schemas.FeatureView``.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from usagekit.schemas.customer import Customer
from usagekit.schemas.feature import FeatureLimitOverride, FeatureView, ResetCadence

HookResult = Union[None, Awaitable[None]]
UsageHook = Callable[["UsageHookContext"], HookResult]
AuthorizePredicate = Callable[["AuthorizationRequest"], Union[bool, Awaitable[bool]]]


@dataclass(frozen=True)
class UsageAmounts:
    """Amounts of one consumption as they will be (or were) committed."""

    amount: float
    before_amount: float
    after_amount: float


@dataclass(frozen=True)
class UsageHookContext:
    """Argument passed to before/after hooks."""

    customer: Customer
    usage: UsageAmounts
    feature: "Feature"


@dataclass(frozen=True)
class AuthorizationRequest:
    """Argument passed to a feature's authorize predicate."""

    customer: Customer
    feature_key: str
    operation: str
    principal: Optional[Any] = None
    override_key: Optional[str] = None
    amount: Optional[float] = None
    event: Optional[str] = None


class FeatureHooks(BaseModel):
    """Lifecycle hooks around a consumption.

    ``before`` runs ahead of the ledger write and aborts it by raising.
    ``after`` runs once the row is committed; its failures are only logged.
    Either may be a plain function or a coroutine function.
    """

    model_config = ConfigDict(frozen=True)

    before: Optional[Callable[..., Any]] = None
    after: Optional[Callable[..., Any]] = None


class Feature(BaseModel):
    """Immutable feature definition."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    max_limit: Optional[float] = None
    min_limit: Optional[float] = None
    reset_cadence: Optional[ResetCadence] = None
    reset_value: float = 0
    details: List[str] = Field(default_factory=list)
    billing_id: Optional[str] = Field(None, description="Opaque billing provider identifier")
    authorize: Optional[Callable[..., Any]] = None
    hooks: Optional[FeatureHooks] = None

    @property
    def resets(self) -> bool:
        """Whether the feature has an automatic reset cadence."""
        return self.reset_cadence is not None and self.reset_cadence != ResetCadence.NEVER

    def to_view(self) -> FeatureView:
        """Drop callables for serialization."""
        return FeatureView(
            key=self.key,
            max_limit=self.max_limit,
            min_limit=self.min_limit,
            reset_cadence=self.reset_cadence,
            reset_value=self.reset_value,
            details=list(self.details),
            billing_id=self.billing_id,
        )


class FeatureOverride(FeatureLimitOverride):
    """Partial feature used by plan overrides.

    Besides limits it may replace descriptive fields and, wholesale, the
    authorize predicate and hooks.
    """

    details: Optional[List[str]] = None
    billing_id: Optional[str] = None
    authorize: Optional[Callable[..., Any]] = None
    hooks: Optional[FeatureHooks] = None


class PlanOverride(BaseModel):
    """Named set of feature patches, e.g. for a pricing plan."""

    features: Dict[str, FeatureOverride] = Field(default_factory=dict)


# Fields a patch may not null out; an explicit None keeps the base value.
_NON_NULLABLE = frozenset({"reset_value", "details"})


def merge_feature(base: Feature, *layers: Optional[FeatureLimitOverride]) -> Feature:
    """Apply override layers to *base*, later layers winning per field.

    Only explicitly set fields of a layer are applied. Values are replaced,
    never combined.
    """
    merged: Dict[str, Any] = {name: getattr(base, name) for name in Feature.model_fields}
    for layer in layers:
        if layer is None:
            continue
        for name in layer.model_fields_set:
            if name == "key" or name not in merged:
                continue
            value = getattr(layer, name)
            if value is None and name in _NON_NULLABLE:
                continue
            merged[name] = value
    return Feature(**merged)
