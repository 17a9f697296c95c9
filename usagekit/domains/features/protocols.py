"""Features domain protocols."""

from typing import List, Optional, Protocol, runtime_checkable

from usagekit.domains.features.types import Feature
from usagekit.schemas.feature import FeatureLimitOverride


@runtime_checkable
class FeatureResolverProtocol(Protocol):
    """Read-only access to registered features and their effective form."""

    def features(self) -> List[Feature]:
        """All registered base features, in registration order."""
        ...

    def get(self, feature_key: str) -> Feature:
        """Base feature by key. Raises FeatureNotFoundError."""
        ...

    def resolve(
        self,
        feature_key: str,
        override_key: Optional[str] = None,
        customer_override: Optional[FeatureLimitOverride] = None,
    ) -> Feature:
        """Effective feature after plan and customer overrides."""
        ...
