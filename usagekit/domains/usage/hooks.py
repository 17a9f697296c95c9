"""Ready-made feature hooks."""

from usagekit.domains.features.types import UsageHookContext
from usagekit.domains.usage.exceptions import UsageLimitExceededError
from usagekit.domains.usage.types import LimitStatus, evaluate_limit


def enforce_limits(context: UsageHookContext) -> None:
    """Before-hook refusing consumptions that would leave the feature's bounds.

    Raises:
        UsageLimitExceededError: if the projected cumulative value is above
            ``max_limit`` or below ``min_limit``.
    """
    feature = context.feature
    value = context.usage.after_amount
    status = evaluate_limit(feature.min_limit, feature.max_limit, value)
    if status == LimitStatus.ABOVE_MAX_LIMIT:
        raise UsageLimitExceededError(feature.key, status.value, value, feature.max_limit)
    if status == LimitStatus.BELOW_MIN_LIMIT:
        raise UsageLimitExceededError(feature.key, status.value, value, feature.min_limit)
