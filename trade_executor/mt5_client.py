"""
mt5_client.py – light wrapper around MetaTrader5-python
-------------------------------------------------------
Implements the `Broker` contract (open_position / close_position) on an
MT5 account. The MetaTrader5 package only exists on Windows, so it is
imported on `connect()`; a missing package is a `BrokerError` there.
"""
from __future__ import annotations

import importlib
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from shared.config    import env
from shared.constants import LOT_SIZE
from shared.errors    import BrokerError
from shared.logging   import get_logger
from shared.utils     import to_utc

from .broker import Direction, Position

log = get_logger("mt5_client")


class MT5Client:
    """
    Thin OO façade so the agent doesn’t depend directly on MetaTrader5 API.
    """

    def __init__(self, api: Any = None) -> None:
        self.mt5       = api
        self.connected = False
        self.login     = env("MT5_LOGIN", 0, int)
        self.password  = env("MT5_PASSWORD", "")
        self.server    = env("MT5_SERVER", "")
        self.path      = env("MT5_PATH", "")     # optional terminal.exe
        self.magic     = env("MT5_MAGIC", 987654, int)
        self.deviation = env("MT5_DEVIATION", 20, int)

    # ───── connection ──────────────────────────────────────────────
    def connect(self) -> None:
        if self.mt5 is None:
            try:
                self.mt5 = importlib.import_module("MetaTrader5")
            except ImportError as exc:
                raise BrokerError("MetaTrader5 package is not installed") from exc

        mt5 = self.mt5
        if not mt5.initialize(path=self.path, login=self.login,
                              password=self.password, server=self.server):
            raise BrokerError(f"MT5 initialize() failed – {mt5.last_error()}")
        acc = mt5.account_info()
        log.info("Connected to MT5 account %s (balance %.2f)", acc.login, acc.balance)
        self.connected = True

    def _api(self) -> Any:
        if not self.connected:
            raise BrokerError("MT5 client is not connected")
        return self.mt5

    def _send(self, req: Dict[str, Any], what: str) -> Any:
        mt5 = self.mt5
        res = mt5.order_send(req)
        if res is None or res.retcode != mt5.TRADE_RETCODE_DONE:
            raise BrokerError(f"{what} failed – {res if res is not None else mt5.last_error()}")
        return res

    # ───── trading actions ────────────────────────────────────────
    def open_position(self, instrument: str, units: int,
                      direction: Direction) -> Position:
        """Market order; returns the open position keyed by MT5 ticket."""
        mt5 = self._api()
        direction = Direction(direction)
        volume = units / LOT_SIZE
        tick = mt5.symbol_info_tick(instrument)
        if tick is None:
            raise BrokerError(f"no MT5 quote for {instrument}")

        buy = direction is Direction.BUY
        price = tick.ask if buy else tick.bid
        log.info("OPEN %s %s %.2f lots @ %.5f", instrument, direction.value, volume, price)
        res = self._send({
            "action": mt5.TRADE_ACTION_DEAL,
            "symbol": instrument,
            "volume": volume,
            "type":   mt5.ORDER_TYPE_BUY if buy else mt5.ORDER_TYPE_SELL,
            "price":  price,
            "deviation": self.deviation,
            "magic":     self.magic,
            "comment":   "daily-agent",
            "type_time": mt5.ORDER_TIME_GTC,
            "type_filling": mt5.ORDER_FILLING_FOK,
        }, "open")
        return Position(
            position_id=str(res.order),
            instrument=instrument,
            direction=direction,
            units=units,
            entry_price=float(getattr(res, "price", 0.0) or price),
            entered_at=to_utc(tick.time),
        )

    def close_position(self, position_id: str) -> Position:
        mt5 = self._api()
        ticket = int(position_id)
        found = mt5.positions_get(ticket=ticket)
        if not found:
            raise BrokerError(f"MT5 position {ticket} not found")
        pos = found[0]

        buy = pos.type == mt5.ORDER_TYPE_BUY
        tick = mt5.symbol_info_tick(pos.symbol)
        if tick is None:
            raise BrokerError(f"no MT5 quote for {pos.symbol}")
        price = tick.bid if buy else tick.ask
        log.info("CLOSE %s", ticket)
        self._send({
            "action": mt5.TRADE_ACTION_DEAL,
            "position": ticket,
            "symbol": pos.symbol,
            "volume": pos.volume,
            "type": mt5.ORDER_TYPE_SELL if buy else mt5.ORDER_TYPE_BUY,
            "price": price,
            "deviation": self.deviation,
            "magic": self.magic,
            "comment": "auto-close",
        }, "close")

        return Position(
            position_id=position_id,
            instrument=pos.symbol,
            direction=Direction.BUY if buy else Direction.SELL,
            units=int(round(pos.volume * LOT_SIZE)),
            entry_price=float(pos.price_open),
            entered_at=to_utc(pos.time),
            exit_price=float(price),
            exited_at=self._exit_time(ticket),
            profit_or_loss=self._realised(ticket, fallback=float(pos.profit)),
        )

    # ───── deal history ───────────────────────────────────────────
    def _realised(self, ticket: int, fallback: float) -> float:
        deals = self.mt5.history_deals_get(position=ticket)
        if not deals:
            return fallback
        return float(sum(d.profit + d.swap + d.commission for d in deals))

    def _exit_time(self, ticket: int) -> datetime:
        deals = self.mt5.history_deals_get(position=ticket)
        if deals:
            return to_utc(max(d.time for d in deals))
        return datetime.now(tz=timezone.utc)
