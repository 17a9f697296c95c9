"""Models for the application."""

from ._base import Base
from .customer import Customer
from .usage_event import UsageEvent

__all__ = [
    "Base",
    "Customer",
    "UsageEvent",
]
