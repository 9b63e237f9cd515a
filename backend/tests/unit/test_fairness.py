"""
Unit tests for the fairness scoring utilities.
"""

import math

import pytest

from fairshare.core.exceptions import InvalidInputError
from fairshare.models.engine_config import AlertConfig
from fairshare.models.enums import BalanceLevel
from fairshare.services import fairness


class TestGini:
    """Tests for the Gini coefficient."""

    @pytest.mark.parametrize("loads", [[], [0, 0, 0], [7], [5, 5, 5, 5], [50, 50]])
    def test_degenerate_vectors_are_perfectly_equal(self, loads):
        assert fairness.gini(loads) == 0.0

    def test_known_value(self):
        assert fairness.gini([1, 2, 3]) == pytest.approx(2 / 9)

    def test_two_members_ninety_ten(self):
        assert fairness.gini([90, 10]) == pytest.approx(0.4)

    def test_order_does_not_matter(self):
        assert fairness.gini([3, 1, 2]) == pytest.approx(fairness.gini([1, 2, 3]))

    def test_scale_invariance(self):
        """Shares and raw loads give the same coefficient."""
        assert fairness.gini([9, 1]) == pytest.approx(fairness.gini([90, 10]))

    def test_result_stays_in_unit_interval(self):
        assert 0.0 <= fairness.gini([0, 0, 0, 100]) <= 1.0

    @pytest.mark.parametrize("bad", [-1, math.nan, math.inf, True, "3"])
    def test_malformed_loads_are_rejected(self, bad):
        with pytest.raises(InvalidInputError):
            fairness.gini([1, bad])


class TestBalanceScore:
    """Tests for the 0-100 balance score."""

    def test_equal_loads_score_100(self):
        assert fairness.balance_score([50, 50]) == 100.0

    def test_skewed_loads_score_lower(self):
        """Going from 50/50 to 90/10 measurably lowers the score."""
        balanced = fairness.balance_score([50, 50])
        skewed = fairness.balance_score([90, 10])

        assert skewed == pytest.approx(60.0)
        assert skewed < balanced

    def test_empty_household_is_balanced(self):
        assert fairness.balance_score([]) == 100.0


class TestLoadShares:
    """Tests for share percentages."""

    def test_shares_sum_to_100_in_tenths(self):
        shares = fairness.load_shares([1, 1, 1])

        assert shares == [33.4, 33.3, 33.3]
        assert sum(round(s * 10) for s in shares) == 1000
        assert sum(shares) == pytest.approx(100.0)

    def test_shares_are_rounded_to_requested_decimals(self):
        shares = fairness.load_shares([1, 1, 1], decimals=2)

        assert shares == [33.34, 33.33, 33.33]
        assert all(s == round(s, 2) for s in shares)

    def test_uneven_loads(self):
        assert fairness.load_shares([3, 1]) == [75.0, 25.0]

    def test_zero_total_gives_all_zero_shares(self):
        assert fairness.load_shares([0, 0]) == [0.0, 0.0]

    def test_empty(self):
        assert fairness.load_shares([]) == []

    def test_many_members_still_sum_to_100(self):
        shares = fairness.load_shares([1.7, 2.2, 3.9, 0.4, 5.1, 2.6, 0.05])

        assert sum(round(s * 10) for s in shares) == 1000


class TestBalanceBand:
    """Tests for banding a balance score."""

    @pytest.mark.parametrize(
        "score,level",
        [
            (85.0, BalanceLevel.BALANCED),
            (55.0, BalanceLevel.MILD_IMBALANCE),
            (35.0, BalanceLevel.IMBALANCE),
            (10.0, BalanceLevel.CRITICAL),
        ],
    )
    def test_default_thresholds(self, score, level):
        assert fairness.balance_band(score, AlertConfig()) == level

    def test_custom_thresholds(self):
        thresholds = AlertConfig(balanced_min=90, mild_imbalance_min=60, imbalance_min=40)

        assert fairness.balance_band(85.0, thresholds) == BalanceLevel.MILD_IMBALANCE
        assert fairness.balance_band(fairness.balance_score([5, 5]), thresholds) == BalanceLevel.BALANCED
