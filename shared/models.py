"""
models.py – market-data value objects handed to the core
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class Tick:
    """One quote update for the tracked instrument."""
    timestamp: datetime
    bid: float
    ask: float | None = None

    @property
    def date(self) -> date:
        return self.timestamp.date()


@dataclass(frozen=True)
class Bar:
    """Daily (or other granularity) aggregate; only `close` feeds warm-up."""
    timestamp: datetime
    close: float
    open: float | None = None
    high: float | None = None
    low: float | None = None
