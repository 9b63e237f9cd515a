"""
Custom exceptions for the load engine.
"""

from typing import Any, Optional


class FairShareError(Exception):
    """Base exception for fairshare."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidInputError(FairShareError):
    """Malformed numeric input rejected at the engine boundary (negative, NaN, infinite)."""

    pass


class ConfigurationError(FairShareError):
    """Engine tuning is inconsistent (unordered thresholds, bad weights, ...)."""

    pass
