"""
cross.py – leading vs. lagging series crossover
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class CrossEvent(str, Enum):
    UP = "cross_up"
    DOWN = "cross_down"


class Cross:
    """
    Feed (fast, slow) pairs; reports an edge when the sign of
    `fast - slow` flips. Unknown until both series are available,
    and back to unknown whenever either drops out.
    """

    def __init__(self) -> None:
        self._prev_sign: Optional[int] = None
        self.last: Optional[CrossEvent] = None

    @property
    def cross_up(self) -> bool:
        return self.last is CrossEvent.UP

    @property
    def cross_down(self) -> bool:
        return self.last is CrossEvent.DOWN

    def next_data(self, fast: Optional[float], slow: Optional[float]) -> Optional[CrossEvent]:
        if fast is None or slow is None:
            self._prev_sign = None
            self.last = None
            return None

        diff = fast - slow
        sign = (diff > 0) - (diff < 0)
        prev, self._prev_sign = self._prev_sign, sign

        event = None
        if prev is not None:
            if prev <= 0 < sign:
                event = CrossEvent.UP
            elif prev >= 0 > sign:
                event = CrossEvent.DOWN
        self.last = event
        return event
