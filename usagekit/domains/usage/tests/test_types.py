"""Unit tests for the limit evaluator and reset policy."""

from zoneinfo import ZoneInfo

import pytest

from usagekit.domains.features.types import Feature
from usagekit.domains.usage.types import LimitStatus, ResetPolicy, evaluate_limit
from usagekit.schemas.feature import ResetCadence


class TestEvaluateLimit:
    @pytest.mark.parametrize(
        "min_limit, max_limit, value, expected",
        [
            (None, None, 1_000_000, LimitStatus.IN_LIMIT),
            (None, 1000, 999, LimitStatus.IN_LIMIT),
            (None, 1000, 1000, LimitStatus.IN_LIMIT),
            (None, 1000, 1100, LimitStatus.ABOVE_MAX_LIMIT),
            (10, None, 10, LimitStatus.IN_LIMIT),
            (10, None, 9.5, LimitStatus.BELOW_MIN_LIMIT),
            (0, 100, 50, LimitStatus.IN_LIMIT),
        ],
    )
    def test_bounds_are_inclusive(self, min_limit, max_limit, value, expected):
        assert evaluate_limit(min_limit, max_limit, value) == expected

    def test_zero_max_is_enforced(self):
        assert evaluate_limit(None, 0, 1) == LimitStatus.ABOVE_MAX_LIMIT
        assert evaluate_limit(None, 0, 0) == LimitStatus.IN_LIMIT

    def test_zero_min_is_enforced(self):
        assert evaluate_limit(0, None, -1) == LimitStatus.BELOW_MIN_LIMIT

    def test_max_checked_before_min(self):
        assert evaluate_limit(10, 5, 7) == LimitStatus.ABOVE_MAX_LIMIT

    def test_status_values(self):
        assert LimitStatus.IN_LIMIT.value == "in-limit"
        assert LimitStatus.ABOVE_MAX_LIMIT.value == "above-max-limit"
        assert LimitStatus.BELOW_MIN_LIMIT.value == "below-min-limit"


class TestResetPolicy:
    def test_from_feature(self):
        tz = ZoneInfo("Europe/Berlin")
        feature = Feature(key="seats", reset_cadence=ResetCadence.DAILY, reset_value=5)

        policy = ResetPolicy.from_feature(feature, tz)

        assert policy.cadence == ResetCadence.DAILY
        assert policy.reset_value == 5
        assert policy.tz is tz
        assert policy.resets is True

    @pytest.mark.parametrize("cadence", [None, ResetCadence.NEVER])
    def test_without_cadence_does_not_reset(self, cadence):
        assert ResetPolicy(cadence=cadence).resets is False
