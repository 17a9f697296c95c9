"""Usage domain types and pure business logic.

Enums, value objects, and the limit evaluator. No IO; everything here is
deterministic.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Optional

from usagekit.domains.features.types import Feature
from usagekit.schemas.feature import ResetCadence
from usagekit.schemas.usage_event import DEFAULT_EVENT, UsageEvent


class LimitStatus(str, Enum):
    """Where a cumulative value sits relative to a feature's limits."""

    IN_LIMIT = "in-limit"
    ABOVE_MAX_LIMIT = "above-max-limit"
    BELOW_MIN_LIMIT = "below-min-limit"


def evaluate_limit(
    min_limit: Optional[float],
    max_limit: Optional[float],
    value: float,
) -> LimitStatus:
    """Classify *value* against inclusive bounds.

    The max bound is checked first. A bound of 0 is a real bound.
    """
    if max_limit is not None and value > max_limit:
        return LimitStatus.ABOVE_MAX_LIMIT
    if min_limit is not None and value < min_limit:
        return LimitStatus.BELOW_MIN_LIMIT
    return LimitStatus.IN_LIMIT


@dataclass(frozen=True)
class ResetDecision:
    """Outcome of a reset-due check."""

    due: bool
    upcoming_boundary: Optional[datetime] = None


@dataclass(frozen=True)
class ResetPolicy:
    """The reset-related part of an effective feature, plus the boundary timezone."""

    cadence: Optional[ResetCadence] = None
    reset_value: float = 0
    tz: tzinfo = field(default=timezone.utc)

    @classmethod
    def from_feature(cls, feature: Feature, tz: tzinfo = timezone.utc) -> "ResetPolicy":
        return cls(cadence=feature.reset_cadence, reset_value=feature.reset_value, tz=tz)

    @property
    def resets(self) -> bool:
        return self.cadence is not None and self.cadence != ResetCadence.NEVER


@dataclass(frozen=True)
class UsageDraft:
    """Caller-supplied part of a new usage event."""

    reference_id: str
    reference_type: str
    feature_key: str
    amount: float
    event: str = DEFAULT_EVENT


class SyncReason(str, Enum):
    """Why a sync did not append a reset row."""

    NO_RESET = "no-reset"
    NOT_DUE = "not-due"


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a sync call."""

    reset: bool
    reason: Optional[SyncReason] = None
    usage: Optional[UsageEvent] = None
