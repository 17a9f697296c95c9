"""Fake implementations for customers domain testing."""

from usagekit.domains.customers.fakes.repository import FakeCustomerRepository

__all__ = ["FakeCustomerRepository"]
