"""CRUD singletons."""

from .crud_customer import customer
from .crud_usage_event import usage_event

__all__ = ["customer", "usage_event"]
