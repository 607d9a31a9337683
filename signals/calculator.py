"""
calculator.py – per-tick signal record with one-time warm-up
============================================================

Cold → Warm on the first tick: the indicators are created, the last
`lookback_days` of daily closes are replayed through them, and only then
is the triggering tick computed. Replayed bars and live ticks share
`calculate()`, so a warmed-up state is identical to having watched that
history live.

A missing bar source is not fatal – indicators just stay `None` longer.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import timedelta
from typing import Dict, Optional, Protocol, Sequence

from shared.constants import (
    LOOKBACK_DAYS, MA_FAST, MA_PERIODS, MA_SLOW, SLOPE_PERIODS,
)
from shared.errors import BarSourceError
from shared.logging import get_logger
from shared.models import Bar, Tick

from .primitives import MACD, RSI, MovingAverage, Slope

log = get_logger("signals.calculator")

CROSS_FIELDS = ("ma_fast", "ma_slow")


class BarSource(Protocol):
    def retrieve_bars(self, instrument: str, granularity: str,
                      start, end) -> Sequence[Bar]: ...


@dataclass(frozen=True)
class SignalRecord:
    ma_fast: Optional[float] = None
    ma_slow: Optional[float] = None
    macd_difference: Optional[float] = None      # macd - macd_signal
    rsi: Optional[float] = None
    slope_10: Optional[float] = None             # slope of the 10-day MA
    slope_25: Optional[float] = None
    slope_50: Optional[float] = None
    estrangement_10: Optional[float] = None      # % away from the 10-day MA
    estrangement_25: Optional[float] = None
    estrangement_50: Optional[float] = None

    def features(self) -> Dict[str, Optional[float]]:
        """Everything except the crossover pair – what modes & records see."""
        out = asdict(self)
        for key in CROSS_FIELDS:
            out.pop(key)
        return out


@dataclass
class IndicatorState:
    """All indicator objects; built once, reset only by a restart."""
    ma: Dict[int, MovingAverage] = field(
        default_factory=lambda: {p: MovingAverage(p) for p in MA_PERIODS})
    slope: Dict[int, Slope] = field(
        default_factory=lambda: {p: Slope(p) for p in SLOPE_PERIODS})
    macd: MACD = field(default_factory=MACD)
    rsi: RSI = field(default_factory=RSI)


def calculate_estrangement(price: float, ma: float) -> float:
    return (price - ma) / ma * 100


class SignalCalculator:

    def __init__(self, bar_source: Optional[BarSource], instrument: str,
                 lookback_days: int = LOOKBACK_DAYS) -> None:
        self.bar_source = bar_source
        self.instrument = instrument
        self.lookback_days = lookback_days
        self.state: Optional[IndicatorState] = None

    @property
    def warm(self) -> bool:
        return self.state is not None

    def next_tick(self, tick: Tick) -> SignalRecord:
        if self.state is None:
            self.prepare_signals(tick)
        return self.calculate(tick.bid)

    def prepare_signals(self, tick: Tick) -> None:
        self.state = IndicatorState()
        bars = self.retrieve_rates(tick)
        for bar in bars:
            self.calculate(bar.close)
        log.info("%s warmed up with %d daily bars", self.instrument, len(bars))

    def retrieve_rates(self, tick: Tick) -> Sequence[Bar]:
        if self.bar_source is None:
            log.warning("%s no bar source – warm-up skipped", self.instrument)
            return []
        start = tick.timestamp - timedelta(days=self.lookback_days)
        try:
            bars = self.bar_source.retrieve_bars(
                self.instrument, "daily", start, tick.timestamp)
        except BarSourceError as exc:
            log.warning("%s warm-up bars unavailable – %s", self.instrument, exc)
            return []
        if not bars:
            log.warning("%s warm-up returned no bars", self.instrument)
            return []
        return list(bars)

    def calculate(self, price: float) -> SignalRecord:
        st = self.state
        if st is None:
            raise RuntimeError("calculate() before prepare_signals()")

        macd = st.macd.observe(price)
        ma = {p: st.ma[p].observe(price) for p in MA_PERIODS}
        rsi = st.rsi.observe(price)

        slopes: Dict[int, Optional[float]] = {}
        estrangements: Dict[int, Optional[float]] = {}
        for p in SLOPE_PERIODS:
            value = ma[p]
            slopes[p] = st.slope[p].observe(value) if value is not None else None
            estrangements[p] = (calculate_estrangement(price, value)
                                if value is not None else None)

        return SignalRecord(
            ma_fast=ma[MA_FAST],
            ma_slow=ma[MA_SLOW],
            macd_difference=macd.difference if macd else None,
            rsi=rsi,
            slope_10=slopes[10],
            slope_25=slopes[25],
            slope_50=slopes[50],
            estrangement_10=estrangements[10],
            estrangement_25=estrangements[25],
            estrangement_50=estrangements[50],
        )
