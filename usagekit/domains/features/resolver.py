"""Feature resolver: base feature < plan override < customer override."""

import logging
from typing import Iterable, List, Mapping, Optional, Union

from usagekit.core.exceptions import InvalidConfigurationError
from usagekit.domains.features.exceptions import FeatureNotFoundError
from usagekit.domains.features.protocols import FeatureResolverProtocol
from usagekit.domains.features.types import Feature, PlanOverride, merge_feature
from usagekit.schemas.feature import FeatureLimitOverride

logger = logging.getLogger(__name__)


class FeatureResolver(FeatureResolverProtocol):
    """Holds the feature registry and computes effective features.

    Built once at startup. Overrides are validated against the registry so a
    plan can never introduce a feature key that has no base definition.
    """

    def __init__(
        self,
        features: Union[Iterable[Feature], Mapping[str, Feature]],
        overrides: Optional[Mapping[str, PlanOverride]] = None,
    ) -> None:
        """Register features and plan overrides.

        Raises:
            InvalidConfigurationError: on duplicate keys, a mapping key that
                disagrees with the feature's own key, or an override that
                names an unknown feature.
        """
        self._features: dict[str, Feature] = {}
        if isinstance(features, Mapping):
            items = list(features.items())
        else:
            items = [(f.key, f) for f in features]
        for key, feature in items:
            if key != feature.key:
                raise InvalidConfigurationError(
                    f"Feature registered as '{key}' declares key '{feature.key}'"
                )
            if key in self._features:
                raise InvalidConfigurationError(f"Feature '{key}' registered twice")
            self._features[key] = feature

        self._overrides: dict[str, PlanOverride] = dict(overrides or {})
        for override_key, override in self._overrides.items():
            unknown = set(override.features) - set(self._features)
            if unknown:
                raise InvalidConfigurationError(
                    f"Override '{override_key}' references unknown features: {sorted(unknown)}"
                )

    def features(self) -> List[Feature]:
        """All registered base features, in registration order."""
        return list(self._features.values())

    def get(self, feature_key: str) -> Feature:
        """Base feature by key."""
        feature = self._features.get(feature_key)
        if feature is None:
            raise FeatureNotFoundError(feature_key)
        return feature

    def resolve(
        self,
        feature_key: str,
        override_key: Optional[str] = None,
        customer_override: Optional[FeatureLimitOverride] = None,
    ) -> Feature:
        """Effective feature after plan and customer overrides.

        An override key without a registered override is ignored.
        """
        base = self.get(feature_key)

        plan_patch = None
        if override_key is not None:
            override = self._overrides.get(override_key)
            if override is None:
                logger.debug("Override '%s' not registered; using base feature", override_key)
            else:
                plan_patch = override.features.get(feature_key)

        if plan_patch is None and customer_override is None:
            return base
        return merge_feature(base, plan_patch, customer_override)
