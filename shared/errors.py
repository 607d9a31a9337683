"""
errors.py – one taxonomy for every collaborator
"""

from __future__ import annotations


class TradingError(Exception):
    """Base class for recoverable failures; the current tick is abandoned."""


class ConfigError(TradingError):
    """Invalid or missing configuration, raised at start-up."""


class FeedError(TradingError):
    """Latest quote could not be fetched."""


class BarSourceError(TradingError):
    """Historical bars could not be retrieved (warm-up keeps going)."""


class BrokerError(TradingError):
    """Opening or closing a position failed at the broker."""


class PredictionError(TradingError):
    """The prediction service gave no usable verdict.

    Distinct from a "down" verdict: the decision is indeterminate.
    """


class PersistenceError(TradingError):
    """A trade record could not be stored."""


class InvariantViolation(AssertionError):
    """Core bug (e.g. two opens without a close). Never caught."""
