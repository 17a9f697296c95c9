"""CRUD operations for the UsageEvent model."""

from typing import List, Optional

from sqlalchemy import and_, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from usagekit.models.usage_event import UsageEvent
from usagekit.schemas.usage_event import UsageEventCreate


class CRUDUsageEvent:
    """CRUD operations for UsageEvent.

    Rows are append-only: there is no update or delete.
    """

    def __init__(self, model: type[UsageEvent]):
        """Initialize with the model class."""
        self.model = model

    async def get_latest(
        self,
        db: AsyncSession,
        *,
        reference_id: str,
        feature_key: str,
        event: Optional[str] = None,
    ) -> Optional[UsageEvent]:
        """Get the most recent event of a stream.

        Args:
            db: Database session
            reference_id: Customer reference
            feature_key: Feature key
            event: Only consider rows with this event tag

        Returns:
            Latest matching row or None
        """
        conditions = [
            self.model.reference_id == reference_id,
            self.model.feature_key == feature_key,
        ]
        if event is not None:
            conditions.append(self.model.event == event)
        query = (
            select(self.model)
            .where(and_(*conditions))
            .order_by(desc(self.model.created_at), desc(self.model.sequence))
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_stream(
        self,
        db: AsyncSession,
        *,
        reference_id: str,
        feature_key: str,
        limit: Optional[int] = None,
    ) -> List[UsageEvent]:
        """Get a stream's rows in ledger order (oldest first)."""
        query = (
            select(self.model)
            .where(
                and_(
                    self.model.reference_id == reference_id,
                    self.model.feature_key == feature_key,
                )
            )
            .order_by(self.model.sequence)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, *, obj_in: UsageEventCreate) -> UsageEvent:
        """Insert a row and flush it.

        Does not commit; a sequence collision surfaces as IntegrityError on flush.
        """
        db_obj = self.model(**obj_in.model_dump())
        db.add(db_obj)
        await db.flush()
        return db_obj


usage_event = CRUDUsageEvent(UsageEvent)
