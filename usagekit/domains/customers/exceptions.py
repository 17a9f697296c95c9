"""Customers domain exceptions."""

from usagekit.core.exceptions import NotFoundException


class CustomerNotFoundError(NotFoundException):
    """Raised when no customer is registered under a reference id."""

    def __init__(self, reference_id: str) -> None:
        """Initialize with the unknown reference id."""
        self.reference_id = reference_id
        super().__init__(f"Customer {reference_id} not found")
