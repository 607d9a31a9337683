#!/usr/bin/env python3
"""
trade_store.py – trade outcome + entry signals, append-only
===========================================================
"""

from __future__ import annotations
import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import pandas as pd
import redis

from shared.constants   import KEY_TRADE_DATA
from shared.errors      import PersistenceError
from shared.logging     import get_logger
from signals.calculator import SignalRecord
from trade_executor.broker import Position

log = get_logger("data_retainer")


@dataclass(frozen=True)
class TradeRecord:
    macd_difference: Optional[float]
    rsi: Optional[float]
    slope_10: Optional[float]
    slope_25: Optional[float]
    slope_50: Optional[float]
    estrangement_10: Optional[float]
    estrangement_25: Optional[float]
    estrangement_50: Optional[float]
    profit_or_loss: float
    direction: str
    entered_at: datetime
    exited_at: datetime

    @classmethod
    def create_from(cls, signal: SignalRecord, position: Position) -> "TradeRecord":
        if not position.closed or position.profit_or_loss is None:
            raise ValueError(f"position #{position.position_id} is still open")
        return cls(
            **signal.features(),
            profit_or_loss=position.profit_or_loss,
            direction=position.direction.value,
            entered_at=position.entered_at,
            exited_at=position.exited_at,  # type: ignore[arg-type]
        )

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["entered_at"] = self.entered_at.isoformat()
        row["exited_at"] = self.exited_at.isoformat()
        return row


class TradeStore(Protocol):
    def save(self, record: TradeRecord) -> None: ...


class RedisTradeStore:
    """RPUSH one JSON row per record onto `collect:trade_data`."""

    def __init__(self, client: Any = None, key: str = KEY_TRADE_DATA) -> None:
        if client is None:
            from shared.redis_client import rds
            client = rds
        self.client = client
        self.key = key

    def save(self, record: TradeRecord) -> None:
        try:
            self.client.rpush(self.key, json.dumps(record.to_row()))
        except redis.RedisError as exc:
            raise PersistenceError(f"trade record not stored – {exc}") from exc
        log.info("trade record stored (%s %+.2f)", record.direction, record.profit_or_loss)


class CsvTradeStore:
    """Append rows to a CSV; header written when the file is new."""

    def __init__(self, csv_path: Path) -> None:
        self.csv_path = Path(csv_path)
        self.csv_path.parent.mkdir(parents=True, exist_ok=True)

    def save(self, record: TradeRecord) -> None:
        df = pd.DataFrame([record.to_row()])
        try:
            df.to_csv(self.csv_path, mode="a", index=False,
                      header=not self.csv_path.exists())
        except OSError as exc:
            raise PersistenceError(f"CSV write failed ({self.csv_path.name}) – {exc}") from exc
        log.info("trade record → %s", self.csv_path.name)
