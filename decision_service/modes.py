"""
modes.py – what to do with a signal, per execution mode
=======================================================

collect :  trade on every signal and store trade result + entry signals
test    :  trade on every signal, store nothing
trade   :  ask the prediction service; trade only when it says "up"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

import requests

from data_retainer.trade_store import TradeRecord, TradeStore
from shared.constants import (
    MODE_COLLECT, MODE_TEST, MODE_TRADE,
    PREDICTION_TIMEOUT, PREDICTION_UP, PREDICTION_URL,
)
from shared.errors import ConfigError, PredictionError
from shared.logging import get_logger
from signals.calculator import SignalRecord
from trade_executor.broker import Direction, Position

log = get_logger("decision_service.modes")


class DecisionMode(ABC):
    name: str

    @abstractmethod
    def should_trade(self, signal: SignalRecord, direction: Direction) -> bool:
        """True when a position should be opened in `direction`."""

    def on_position_closed(self, signal: SignalRecord, position: Position) -> None:
        """Called once per closed position with the signal captured at entry."""

    @classmethod
    def from_config(cls, *, store: Optional[TradeStore], url: str,
                    timeout: float) -> "DecisionMode":
        return cls()


class CollectMode(DecisionMode):
    name = MODE_COLLECT

    def __init__(self, store: TradeStore) -> None:
        self.store = store

    @classmethod
    def from_config(cls, *, store: Optional[TradeStore], url: str,
                    timeout: float) -> "CollectMode":
        if store is None:
            raise ConfigError("collect mode needs a trade store")
        return cls(store)

    def should_trade(self, signal: SignalRecord, direction: Direction) -> bool:
        return True

    def on_position_closed(self, signal: SignalRecord, position: Position) -> None:
        self.store.save(TradeRecord.create_from(signal, position))


class TestMode(DecisionMode):
    name = MODE_TEST

    def should_trade(self, signal: SignalRecord, direction: Direction) -> bool:
        return True


class TradeMode(DecisionMode):
    name = MODE_TRADE

    def __init__(self, url: str = PREDICTION_URL,
                 timeout: float = PREDICTION_TIMEOUT,
                 session: Optional[requests.Session] = None) -> None:
        if timeout <= 0:
            raise ConfigError("prediction timeout must be > 0")
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, *, store: Optional[TradeStore], url: str,
                    timeout: float) -> "TradeMode":
        return cls(url=url, timeout=timeout)

    def payload(self, signal: SignalRecord, direction: Direction) -> Dict[str, object]:
        return {**signal.features(), "direction": Direction(direction).value}

    def should_trade(self, signal: SignalRecord, direction: Direction) -> bool:
        try:
            resp = self.session.post(self.url, json=self.payload(signal, direction),
                                     timeout=self.timeout)
            resp.raise_for_status()
            body = resp.json()
        except requests.Timeout as exc:
            raise PredictionError(f"prediction timed out after {self.timeout:g}s") from exc
        except requests.JSONDecodeError as exc:
            raise PredictionError("prediction response is not JSON") from exc
        except requests.RequestException as exc:
            raise PredictionError(f"prediction request failed – {exc}") from exc

        result = body.get("result") if isinstance(body, dict) else None
        if not isinstance(result, str):
            raise PredictionError(f"prediction response has no result: {body!r}")
        log.info("prediction for %s → %s", Direction(direction).value, result)
        return result == PREDICTION_UP


MODES: Dict[str, Type[DecisionMode]] = {
    CollectMode.name: CollectMode,
    TestMode.name: TestMode,
    TradeMode.name: TradeMode,
}


def create_mode(name: str, *, store: Optional[TradeStore] = None,
                url: str = PREDICTION_URL,
                timeout: float = PREDICTION_TIMEOUT) -> DecisionMode:
    """Build the mode named by configuration; unknown names are rejected."""
    try:
        mode_cls = MODES[name]
    except KeyError:
        raise ConfigError(
            f"unknown exec mode {name!r} – expected one of {', '.join(MODES)}") from None
    return mode_cls.from_config(store=store, url=url, timeout=timeout)
