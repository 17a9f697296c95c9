"""Feature schemas.

Serializable shapes only. The full Feature definition carries callables and
lives in ``usagekit.domains.features.types``.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResetCadence(str, Enum):
    """Calendar-aligned reset period of a feature."""

    HOURLY = "hourly"
    SIX_HOURLY = "6-hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    NEVER = "never"


class FeatureLimitOverride(BaseModel):
    """Partial limit settings for one feature.

    Only fields that were explicitly set take part in a merge, so
    ``FeatureLimitOverride(max_limit=None)`` removes a base limit while
    ``FeatureLimitOverride()`` leaves it untouched.
    """

    model_config = ConfigDict(extra="forbid")

    max_limit: Optional[float] = None
    min_limit: Optional[float] = None
    reset_cadence: Optional[ResetCadence] = None
    reset_value: Optional[float] = None


class FeatureSummary(BaseModel):
    """Listing entry for a registered feature."""

    feature_key: str
    details: List[str] = Field(default_factory=list)


class FeatureView(BaseModel):
    """Effective feature with callables stripped, safe to serialize."""

    key: str
    max_limit: Optional[float] = None
    min_limit: Optional[float] = None
    reset_cadence: Optional[ResetCadence] = None
    reset_value: float = 0
    details: List[str] = Field(default_factory=list)
    billing_id: Optional[str] = None
