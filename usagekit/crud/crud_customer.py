"""CRUD operations for the Customer model."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from usagekit.models.customer import Customer
from usagekit.schemas.customer import CustomerCreate


class CRUDCustomer:
    """CRUD operations for Customer."""

    def __init__(self, model: type[Customer]):
        """Initialize with the model class."""
        self.model = model

    async def get_by_reference_id(
        self, db: AsyncSession, *, reference_id: str
    ) -> Optional[Customer]:
        """Get a customer by its caller-assigned reference."""
        query = select(self.model).where(self.model.reference_id == reference_id)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_multi(self, db: AsyncSession, *, skip: int = 0, limit: int = 100) -> List[Customer]:
        """List customers ordered by registration time, then reference id."""
        query = (
            select(self.model)
            .order_by(self.model.created_at, self.model.reference_id)
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def upsert(self, db: AsyncSession, *, obj_in: CustomerCreate) -> Customer:
        """Insert or replace the customer identified by ``obj_in.reference_id``.

        Does not commit.
        """
        values = {
            "reference_type": obj_in.reference_type,
            "email": obj_in.email,
            "name": obj_in.name,
            "override_key": obj_in.override_key,
            "feature_limits": {
                key: limits.model_dump(mode="json", exclude_unset=True)
                for key, limits in obj_in.feature_limits.items()
            },
            "customer_metadata": dict(obj_in.metadata),
        }

        db_obj = await self.get_by_reference_id(db, reference_id=obj_in.reference_id)
        if db_obj is None:
            db_obj = self.model(reference_id=obj_in.reference_id, **values)
            db.add(db_obj)
        else:
            for field, value in values.items():
                setattr(db_obj, field, value)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj


customer = CRUDCustomer(Customer)
