"""Customers domain repository wrapping crud.customer."""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from usagekit import crud
from usagekit.db.session import get_db_context
from usagekit.domains.customers.protocols import CustomerRepositoryProtocol
from usagekit.models.customer import Customer as CustomerModel
from usagekit.schemas.customer import Customer, CustomerCreate


def to_schema(db_obj: CustomerModel) -> Customer:
    """Convert a Customer row to its schema."""
    return Customer.model_validate(
        {
            "id": db_obj.id,
            "created_at": db_obj.created_at,
            "modified_at": db_obj.modified_at,
            "reference_id": db_obj.reference_id,
            "reference_type": db_obj.reference_type,
            "email": db_obj.email,
            "name": db_obj.name,
            "override_key": db_obj.override_key,
            "feature_limits": db_obj.feature_limits or {},
            "metadata": db_obj.customer_metadata or {},
        }
    )


class CustomerRepository(CustomerRepositoryProtocol):
    """Delegates to the crud.customer singleton, one session per call."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession], *, page_size: int = 500
    ) -> None:
        """Initialize with the session factory built at startup."""
        self._session_factory = session_factory
        self._page_size = page_size

    async def get(self, reference_id: str) -> Optional[Customer]:
        """Get a customer by reference id."""
        async with get_db_context(self._session_factory) as db:
            db_obj = await crud.customer.get_by_reference_id(db, reference_id=reference_id)
            return to_schema(db_obj) if db_obj else None

    async def upsert(self, obj_in: CustomerCreate) -> Customer:
        """Create or replace a customer."""
        async with get_db_context(self._session_factory) as db:
            async with db.begin():
                db_obj = await crud.customer.upsert(db, obj_in=obj_in)
                return to_schema(db_obj)

    async def list(self) -> List[Customer]:
        """All registered customers, read page by page."""
        customers: List[Customer] = []
        async with get_db_context(self._session_factory) as db:
            while True:
                rows = await crud.customer.get_multi(
                    db, skip=len(customers), limit=self._page_size
                )
                customers.extend(to_schema(row) for row in rows)
                if len(rows) < self._page_size:
                    return customers
