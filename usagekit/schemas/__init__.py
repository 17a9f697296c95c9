"""Schemas for the application."""

from .customer import Customer, CustomerBase, CustomerCreate
from .feature import FeatureLimitOverride, FeatureSummary, FeatureView, ResetCadence
from .usage_event import (
    DEFAULT_EVENT,
    RESET_EVENT,
    StreamKey,
    UsageEvent,
    UsageEventBase,
    UsageEventCreate,
)

__all__ = [
    "Customer",
    "CustomerBase",
    "CustomerCreate",
    "DEFAULT_EVENT",
    "FeatureLimitOverride",
    "FeatureSummary",
    "FeatureView",
    "RESET_EVENT",
    "ResetCadence",
    "StreamKey",
    "UsageEvent",
    "UsageEventBase",
    "UsageEventCreate",
]
