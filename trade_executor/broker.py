"""
broker.py – position model, broker contract, paper broker
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

from shared.errors  import BrokerError
from shared.logging import get_logger
from shared.models  import Tick
from shared.utils   import pip_size

log = get_logger("trade_executor.broker")


class Direction(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.BUY else -1


@dataclass(frozen=True)
class Position:
    position_id: str
    instrument: str
    direction: Direction
    units: int
    entry_price: float
    entered_at: datetime
    exit_price: Optional[float] = None
    exited_at: Optional[datetime] = None
    profit_or_loss: Optional[float] = None

    @property
    def closed(self) -> bool:
        return self.exited_at is not None


class Broker(Protocol):
    def open_position(self, instrument: str, units: int,
                      direction: Direction) -> Position: ...

    def close_position(self, position_id: str) -> Position: ...


class PaperBroker:
    """
    In-memory broker: fills at the bid returned by `quote_fn(instrument)`,
    P/L in quote currency. Used for DRY-RUN and tests.
    """

    def __init__(self, quote_fn: Callable[[str], Optional[Tick]]) -> None:
        self.quote_fn = quote_fn
        self.positions: Dict[str, Position] = {}
        self._ids = itertools.count(1)

    def _quote(self, instrument: str) -> Tick:
        tick = self.quote_fn(instrument)
        if tick is None:
            raise BrokerError(f"no quote for {instrument} – cannot fill")
        return tick

    def open_position(self, instrument: str, units: int,
                      direction: Direction) -> Position:
        tick = self._quote(instrument)
        pos = Position(
            position_id=str(next(self._ids)),
            instrument=instrument,
            direction=Direction(direction),
            units=units,
            entry_price=tick.bid,
            entered_at=tick.timestamp,
        )
        self.positions[pos.position_id] = pos
        log.info("OPEN %s %s %s @ %.5f (paper #%s)",
                 instrument, pos.direction.value, units, tick.bid, pos.position_id)
        return pos

    def close_position(self, position_id: str) -> Position:
        pos = self.positions.get(position_id)
        if pos is None or pos.closed:
            raise BrokerError(f"no open paper position #{position_id}")
        tick = self._quote(pos.instrument)
        diff = (tick.bid - pos.entry_price) * pos.direction.sign
        closed = replace(pos, exit_price=tick.bid, exited_at=tick.timestamp,
                         profit_or_loss=diff * pos.units)
        self.positions[position_id] = closed
        log.info("CLOSE %s #%s @ %.5f (%+.1f p)", pos.instrument, position_id,
                 tick.bid, diff / pip_size(pos.instrument))
        return closed
