"""
Shared fixtures: synthetic bars/ticks, a scriptable bar source and a
broker that can be told to fail.
"""

import os

os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from shared.errors import BarSourceError, BrokerError
from shared.models import Bar, Tick
from trade_executor.broker import Direction, PaperBroker, Position

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_bars(closes, start: datetime = START) -> List[Bar]:
    return [Bar(timestamp=start + timedelta(days=i), close=float(c))
            for i, c in enumerate(closes)]


def make_tick(day: int, price: float, hour: int = 9, start: datetime = START) -> Tick:
    return Tick(timestamp=start + timedelta(days=day, hours=hour), bid=float(price))


class FakeBarSource:
    def __init__(self, bars=None, error: Optional[Exception] = None) -> None:
        self.bars = list(bars or [])
        self.error = error
        self.calls = []

    def retrieve_bars(self, instrument, granularity, start, end):
        self.calls.append((instrument, granularity, start, end))
        if self.error is not None:
            raise self.error
        return list(self.bars)


class FlakyBroker(PaperBroker):
    """Paper broker over a settable quote that records every call."""

    def __init__(self) -> None:
        self.tick: Optional[Tick] = None
        super().__init__(lambda _sym: self.tick)
        self.calls: List[tuple] = []
        self.fail_open = False
        self.fail_close = False

    def open_position(self, instrument: str, units: int, direction: Direction) -> Position:
        self.calls.append(("open", Direction(direction)))
        if self.fail_open:
            raise BrokerError("venue rejected order")
        return super().open_position(instrument, units, direction)

    def close_position(self, position_id: str) -> Position:
        self.calls.append(("close", position_id))
        if self.fail_close:
            raise BrokerError("venue unreachable")
        return super().close_position(position_id)

    @property
    def opens(self):
        return [c for c in self.calls if c[0] == "open"]

    @property
    def closes(self):
        return [c for c in self.calls if c[0] == "close"]


@pytest.fixture
def rising_bars():
    return make_bars(100.0 + 0.5 * i for i in range(60))


@pytest.fixture
def bar_source(rising_bars):
    return FakeBarSource(rising_bars)


@pytest.fixture
def broker():
    return FlakyBroker()


@pytest.fixture
def failing_bar_source():
    return FakeBarSource(error=BarSourceError("FMP down"))
