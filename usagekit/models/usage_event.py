"""Usage event model: one append-only ledger row."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from usagekit.models._base import Base


class UsageEvent(Base):
    """Append-only usage ledger row.

    Rows sharing (reference_id, feature_key) form a stream. ``sequence`` is the
    row's position in its stream; the unique constraint turns two writers that
    computed from the same prior row into an IntegrityError instead of a lost
    update.
    """

    __tablename__ = "usage_event"
    __table_args__ = (
        UniqueConstraint(
            "reference_id", "feature_key", "sequence", name="uq_usage_event_stream_sequence"
        ),
        Index("ix_usage_event_stream_created", "reference_id", "feature_key", "created_at"),
    )

    reference_id: Mapped[str] = mapped_column(String, nullable=False)
    reference_type: Mapped[str] = mapped_column(String, nullable=False)
    feature_key: Mapped[str] = mapped_column(String, nullable=False)
    event: Mapped[str] = mapped_column(String, nullable=False, default="use")
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    before_amount: Mapped[float] = mapped_column(Float, nullable=False)
    after_amount: Mapped[float] = mapped_column(Float, nullable=False)
    reset_boundary: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Boundary marker of the most recent reset reflected in this stream",
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
