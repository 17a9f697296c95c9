"""Customer schemas."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from usagekit.schemas.feature import FeatureLimitOverride


class CustomerBase(BaseModel):
    """Base schema for customers."""

    reference_id: str = Field(..., min_length=1, description="Caller-assigned stable identifier")
    reference_type: str = Field(..., description="Free-form classification, e.g. 'user' or 'org'")
    email: Optional[str] = None
    name: Optional[str] = None
    override_key: Optional[str] = Field(
        None, description="Plan override used when a request does not name one"
    )
    feature_limits: Dict[str, FeatureLimitOverride] = Field(
        default_factory=dict, description="Per-feature limit overrides for this customer"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Opaque data such as billing provider ids"
    )


class CustomerCreate(CustomerBase):
    """Schema for registering or updating a customer."""

    pass


class Customer(CustomerBase):
    """Complete customer schema."""

    id: UUID
    created_at: datetime
    modified_at: datetime

    model_config = ConfigDict(from_attributes=True)
