"""Usage event schemas."""

from datetime import datetime, timezone
from typing import NamedTuple, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

RESET_EVENT = "reset"
DEFAULT_EVENT = "use"


class StreamKey(NamedTuple):
    """Identifies one usage stream."""

    reference_id: str
    feature_key: str

    def __str__(self) -> str:
        return f"{self.reference_id}:{self.feature_key}"


class UsageEventBase(BaseModel):
    """Fields shared by usage event drafts and stored rows."""

    reference_id: str
    reference_type: str
    feature_key: str
    event: str = DEFAULT_EVENT
    amount: float
    before_amount: float
    after_amount: float
    reset_boundary: Optional[datetime] = Field(
        None, description="Boundary marker of the latest reset reflected in the stream"
    )
    sequence: int = Field(..., ge=1, description="Position of the row within its stream")
    created_at: datetime

    @field_validator("created_at", "reset_boundary")
    @classmethod
    def ensure_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Normalize to aware UTC; stores without timezone support hand back naive UTC."""
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def stream(self) -> StreamKey:
        return StreamKey(self.reference_id, self.feature_key)

    @property
    def is_reset(self) -> bool:
        return self.event == RESET_EVENT


class UsageEventCreate(UsageEventBase):
    """Schema for appending a new ledger row."""

    pass


class UsageEvent(UsageEventBase):
    """Complete, persisted usage event."""

    id: UUID

    model_config = ConfigDict(from_attributes=True, frozen=True)
