"""
Boundary checks for bare numeric inputs.

Models validate themselves through pydantic; these helpers cover the
functions that accept plain numbers (load vectors, weight overrides).
"""

import math
from typing import Iterable

from fairshare.core.exceptions import InvalidInputError


def ensure_load_value(value: float, label: str = "load") -> float:
    """Reject NaN, infinite and negative numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{label} must be a number", details={"value": value})
    if math.isnan(value) or math.isinf(value):
        raise InvalidInputError(f"{label} must be finite", details={"value": value})
    if value < 0:
        raise InvalidInputError(f"{label} must not be negative", details={"value": value})
    return float(value)


def ensure_load_vector(values: Iterable[float], label: str = "loads") -> list[float]:
    """Validate every element of a load vector and return it as a list of floats."""
    checked = []
    for index, value in enumerate(values):
        checked.append(ensure_load_value(value, f"{label}[{index}]"))
    return checked
