"""Features domain exceptions."""

from usagekit.core.exceptions import NotFoundException


class FeatureNotFoundError(NotFoundException):
    """Raised when a feature key is not registered."""

    def __init__(self, feature_key: str) -> None:
        """Initialize with the unknown feature key."""
        self.feature_key = feature_key
        super().__init__(f"Feature {feature_key} not found")
