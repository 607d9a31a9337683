"""
primitives.py – stateful, incremental indicators
------------------------------------------------
Same numbers as the batch versions in pandas / `ta`
(rolling mean, ewm(adjust=False), Wilder RSI) but one sample at a time.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

import numpy as np

from shared.constants import MACD_FAST, MACD_SIGNAL, MACD_SLOW, RSI_PERIOD


class MovingAverage:
    """Simple moving average over the last `period` samples."""

    def __init__(self, period: int) -> None:
        if period < 1:
            raise ValueError("MovingAverage period must be >= 1")
        self.period = period
        self._window: Deque[float] = deque(maxlen=period)
        self._sum = 0.0

    @property
    def ready(self) -> bool:
        return len(self._window) == self.period

    def observe(self, value: float) -> Optional[float]:
        if self.ready:
            self._sum -= self._window[0]       # about to be evicted
        self._window.append(value)
        self._sum += value
        if not self.ready:
            return None
        return self._sum / self.period


class ExponentialMovingAverage:
    """EMA seeded with the first sample; value once `period` samples seen."""

    def __init__(self, period: int, alpha: float | None = None) -> None:
        if period < 1:
            raise ValueError("EMA period must be >= 1")
        self.period = period
        self.alpha = alpha if alpha is not None else 2.0 / (period + 1)
        self.value: Optional[float] = None
        self.count = 0

    @property
    def ready(self) -> bool:
        return self.count >= self.period

    def observe(self, value: float) -> Optional[float]:
        if self.value is None:
            self.value = value
        else:
            self.value = (1.0 - self.alpha) * self.value + self.alpha * value
        self.count += 1
        return self.value if self.ready else None


class Slope:
    """
    Least-squares slope of the last `window` values of a derived series
    (x = 0 … window-1, so the unit is "per sample").
    """

    def __init__(self, window: int) -> None:
        if window < 2:
            raise ValueError("Slope window must be >= 2")
        self.window = window
        self._values: Deque[float] = deque(maxlen=window)
        x = np.arange(window, dtype=float)
        self._xc = x - x.mean()
        self._denom = float(np.dot(self._xc, self._xc))

    def observe(self, value: float) -> Optional[float]:
        self._values.append(value)
        if len(self._values) < self.window:
            return None
        y = np.fromiter(self._values, dtype=float, count=self.window)
        return float(np.dot(self._xc, y - y.mean()) / self._denom)


@dataclass(frozen=True)
class MACDValue:
    macd: float
    signal: float

    @property
    def difference(self) -> float:
        return self.macd - self.signal


class MACD:
    """
    fast/slow EMA of the price and a signal EMA of their difference.

    Nothing is reported until the slow EMA is warm; the signal line is
    seeded with the first MACD value it receives.
    """

    def __init__(self, fast: int = MACD_FAST, slow: int = MACD_SLOW,
                 signal: int = MACD_SIGNAL) -> None:
        if fast >= slow:
            raise ValueError("MACD fast period must be shorter than slow period")
        self._fast = ExponentialMovingAverage(fast)
        self._slow = ExponentialMovingAverage(slow)
        self._signal = ExponentialMovingAverage(signal)

    def observe(self, price: float) -> Optional[MACDValue]:
        fast = self._fast.observe(price)
        slow = self._slow.observe(price)
        if fast is None or slow is None:
            return None
        macd = fast - slow
        self._signal.observe(macd)
        return MACDValue(macd=macd, signal=self._signal.value)  # type: ignore[arg-type]


class RSI:
    """
    Relative Strength Index with Wilder smoothing (alpha = 1/period).

    The first sample counts as a zero change, like ta's RSIIndicator,
    so the value appears after `period` samples.
    """

    def __init__(self, period: int = RSI_PERIOD) -> None:
        if period < 1:
            raise ValueError("RSI period must be >= 1")
        self.period = period
        alpha = 1.0 / period
        self._gain = ExponentialMovingAverage(period, alpha=alpha)
        self._loss = ExponentialMovingAverage(period, alpha=alpha)
        self._prev: Optional[float] = None

    def observe(self, price: float) -> Optional[float]:
        change = 0.0 if self._prev is None else price - self._prev
        self._prev = price
        gain = self._gain.observe(max(change, 0.0))
        loss = self._loss.observe(max(-change, 0.0))
        if gain is None or loss is None:
            return None
        if loss == 0.0:
            return 100.0
        rsi = 100.0 - 100.0 / (1.0 + gain / loss)
        return min(100.0, max(0.0, rsi))
