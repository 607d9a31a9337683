"""
agent.py – once-a-day position orchestrator
===========================================

For the first tick of every calendar date:

1. compute the `SignalRecord`            (signals.calculator)
2. feed the MA5 / MA10 crossover          (signals.cross)
3. close the open position, if any, and hand it to the mode
4. ask the mode whether to open a new one; open it at the broker

Only one position is ever held. A broker failure leaves the previous
state untouched (failed close → still open, failed open → flat); a
prediction failure is reported as *indeterminate*, not as "no trade".
Either way the day is spent – there is no retry on a later tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from shared.constants import DEFAULT_SYMBOL, DEFAULT_UNITS, ENTRY_ALWAYS_BUY, ENTRY_CROSS
from shared.errors import (
    BrokerError, ConfigError, InvariantViolation, PersistenceError, PredictionError,
    TradingError,
)
from shared.logging import get_logger
from shared.models import Tick
from signals.calculator import SignalCalculator, SignalRecord
from signals.cross import Cross, CrossEvent
from trade_executor.broker import Broker, Direction, Position

from .modes import DecisionMode

log = get_logger("decision_service.agent")

ENTRY_RULES = (ENTRY_ALWAYS_BUY, ENTRY_CROSS)


class Decision(str, Enum):
    TRADED = "traded"                  # position opened
    DECLINED = "declined"              # mode said no (e.g. predicted down)
    INDETERMINATE = "indeterminate"    # prediction service gave no verdict
    FAILED = "failed"                  # broker / persistence failure
    HELD = "held"                      # entry rule asked for no action


@dataclass
class AgentState:
    """
    Everything the agent remembers between ticks. Built empty with the
    agent and never reset afterwards – not even on errors.
    """
    current_date: Optional[date] = None
    position: Optional[Position] = None
    entry_signal: Optional[SignalRecord] = None

    @property
    def is_open(self) -> bool:
        return self.position is not None


@dataclass
class TickOutcome:
    date: date
    signal: SignalRecord
    cross: Optional[CrossEvent]
    decision: Decision = Decision.HELD
    direction: Optional[Direction] = None
    closed: Optional[Position] = None
    opened: Optional[Position] = None
    error: Optional[TradingError] = None
    reason: str = ""


class TradingAgent:

    def __init__(self, broker: Broker, calculator: SignalCalculator,
                 mode: DecisionMode, instrument: str = DEFAULT_SYMBOL,
                 units: int = DEFAULT_UNITS, entry_rule: str = ENTRY_ALWAYS_BUY,
                 cross: Optional[Cross] = None) -> None:
        if entry_rule not in ENTRY_RULES:
            raise ConfigError(f"unknown entry rule {entry_rule!r}")
        if units <= 0:
            raise ConfigError("trade units must be > 0")
        self.broker = broker
        self.calculator = calculator
        self.mode = mode
        self.instrument = instrument
        self.units = units
        self.entry_rule = entry_rule
        self.cross = cross or Cross()
        self.state = AgentState()

    # ───── tick entry point ────────────────────────────────────────
    def next_tick(self, tick: Tick) -> Optional[TickOutcome]:
        """Process the first tick of a date; later ticks that day → None."""
        day = tick.date
        if self.state.current_date == day:
            return None
        self.state.current_date = day

        signal = self.calculator.next_tick(tick)
        event = self.cross.next_data(signal.ma_fast, signal.ma_slow)
        outcome = TickOutcome(date=day, signal=signal, cross=event)
        self.do_trade(signal, outcome)
        return outcome

    def do_trade(self, signal: SignalRecord, outcome: TickOutcome) -> None:
        if self.entry_rule == ENTRY_ALWAYS_BUY:
            # every day, to collect as many samples as possible
            self.buy(signal, outcome)
        elif self.cross.cross_up:
            self.buy(signal, outcome)
        elif self.cross.cross_down:
            self.sell(signal, outcome)
        else:
            outcome.reason = "no crossover"

    def buy(self, signal: SignalRecord, outcome: TickOutcome) -> None:
        self._enter(Direction.BUY, signal, outcome)

    def sell(self, signal: SignalRecord, outcome: TickOutcome) -> None:
        self._enter(Direction.SELL, signal, outcome)

    # ───── position handling ───────────────────────────────────────
    def _enter(self, direction: Direction, signal: SignalRecord,
               outcome: TickOutcome) -> None:
        outcome.direction = direction
        try:
            self.close_exist_positions(outcome)
            if not self.mode.should_trade(signal, direction):
                outcome.decision = Decision.DECLINED
                outcome.reason = f"{self.mode.name} mode declined {direction.value}"
                log.info("%s %s", outcome.date, outcome.reason)
                return
            outcome.opened = self._open(direction, signal)
            outcome.decision = Decision.TRADED
        except PredictionError as exc:
            self._skip(outcome, Decision.INDETERMINATE, exc)
        except (BrokerError, PersistenceError) as exc:
            self._skip(outcome, Decision.FAILED, exc)

    def _open(self, direction: Direction, signal: SignalRecord) -> Position:
        if self.state.is_open:
            raise InvariantViolation(
                f"open {direction.value} while #{self.state.position.position_id} is open")
        position = self.broker.open_position(self.instrument, self.units, direction)
        self.state.position = position
        self.state.entry_signal = signal
        return position

    def close_exist_positions(self, outcome: Optional[TickOutcome] = None) -> Optional[Position]:
        """Close the held position (if any) and pass it to the mode."""
        st = self.state
        if st.position is None:
            return None
        closed = self.broker.close_position(st.position.position_id)
        entry_signal = st.entry_signal
        st.position = None
        st.entry_signal = None
        if outcome is not None:
            outcome.closed = closed
        if entry_signal is None:
            raise InvariantViolation("open position without an entry signal")
        self.mode.on_position_closed(entry_signal, closed)
        return closed

    def _skip(self, outcome: TickOutcome, decision: Decision, exc: TradingError) -> None:
        outcome.decision = decision
        outcome.error = exc
        outcome.reason = f"{type(exc).__name__}: {exc}"
        log.error("%s %s skipped – %s", outcome.date,
                  outcome.direction.value if outcome.direction else "trade",
                  outcome.reason,
                  extra={"ctx": {"decision": decision.value,
                                 "open": self.state.is_open}})
