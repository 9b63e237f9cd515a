"""
Fairness scoring utilities.

Population-level inequality of member loads: Gini coefficient, the derived
0-100 balance score, its band, and share percentages that add up to 100
at their rounding granularity.
"""

from __future__ import annotations

import math
from typing import Iterable

from fairshare.models.engine_config import AlertConfig
from fairshare.models.enums import BalanceLevel
from fairshare.utils.validation import ensure_load_vector


def gini(loads: Iterable[float]) -> float:
    """
    Gini coefficient of a load vector.

    Mean absolute difference over all ordered pairs normalized by twice the
    mean. Empty, single-member, all-equal and all-zero vectors give exactly 0.

    Raises:
        InvalidInputError: a load is negative, NaN or infinite
    """
    values = ensure_load_vector(loads)
    n = len(values)
    if n == 0:
        return 0.0
    total = sum(values)
    if total == 0:
        return 0.0

    ordered = sorted(values)
    if ordered[0] == ordered[-1]:
        return 0.0

    # Sorted form of sum_i sum_j |x_i - x_j| in O(n log n)
    weighted = sum((2 * (i + 1) - n - 1) * x for i, x in enumerate(ordered))
    if weighted <= 0:
        return 0.0
    # sum|xi - xj| / (2 n^2 mean) == 2 * weighted / (2 n total)
    return min(1.0, weighted / (n * total))


def balance_score(loads: Iterable[float]) -> float:
    """Balance score in [0, 100]: 100 * (1 - gini)."""
    return 100.0 * (1.0 - gini(loads))


def load_shares(loads: Iterable[float], decimals: int = 1) -> list[float]:
    """
    Percent share of each load, rounded to `decimals` places.

    Uses largest-remainder rounding, so the shares sum to 100 exactly at the
    requested granularity (whole tenths by default). All shares are 0 when
    the total is 0.
    """
    values = ensure_load_vector(loads)
    total = sum(values)
    if not values or total == 0:
        return [0.0 for _ in values]

    scale = 10**decimals
    units = 100 * scale
    raw = [value / total * units for value in values]
    floored = [math.floor(r) for r in raw]
    remaining = units - sum(floored)
    # Hand out leftover units to the largest remainders, ties by position
    order = sorted(range(len(raw)), key=lambda i: (-(raw[i] - floored[i]), i))
    for index in order[:remaining]:
        floored[index] += 1
    return [round(unit / scale, decimals) for unit in floored]


def balance_band(score: float, thresholds: AlertConfig) -> BalanceLevel:
    """Band a balance score using the alert thresholds."""
    return thresholds.band(score)
