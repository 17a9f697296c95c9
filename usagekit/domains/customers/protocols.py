"""Customers domain protocols."""

from typing import List, Optional, Protocol, runtime_checkable

from usagekit.schemas.customer import Customer, CustomerCreate


@runtime_checkable
class CustomerRepositoryProtocol(Protocol):
    """Customer store consumed by the usage service.

    Implementations own their sessions; callers never pass one.
    """

    async def get(self, reference_id: str) -> Optional[Customer]:
        """Get a customer by reference id, or None."""
        ...

    async def upsert(self, obj_in: CustomerCreate) -> Customer:
        """Create or replace the customer with ``obj_in.reference_id``."""
        ...

    async def list(self) -> List[Customer]:
        """All registered customers."""
        ...
