"""Customer model."""

from typing import Optional

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from usagekit.models._base import Base, ModifiedMixin


class Customer(Base, ModifiedMixin):
    """Identity anchor for metered usage.

    ``reference_id`` is assigned by the caller and is the lookup key. Billing
    provider identifiers and other opaque data live in ``customer_metadata``.
    """

    __tablename__ = "usage_customer"

    reference_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    reference_type: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    override_key: Mapped[Optional[str]] = mapped_column(
        String, nullable=True, comment="Plan override applied when the caller passes none"
    )
    feature_limits: Mapped[Optional[dict]] = mapped_column(
        JSON, nullable=True, comment="feature_key -> partial limit override"
    )
    customer_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
