#!/usr/bin/env python3
"""
main.py – decision_service entry point
======================================

Environment
-----------
SYMBOL              instrument                       (default: USDJPY)
TRADE_UNITS         units per position               (default: 10000)
EXEC_MODE           collect | test | trade           (default: collect)
ENTRY_RULE          always_buy | cross               (default: always_buy)
BROKER              paper | mt5                      (default: paper)
TRADE_STORE         redis | csv                      (default: redis)
HISTORY_DIR         CSV trade store directory        (default: ./history)
PREDICTION_URL      prediction endpoint (trade mode)
PREDICTION_TIMEOUT  seconds                          (default: 10)
LOOKBACK_DAYS       warm-up window in days           (default: 60)
TICK_INTERVAL       seconds between quote polls      (default: 15)
FMP_API_KEY         financialmodelingprep.com key
REDIS_URL           Redis for store, heartbeat, pause flag
REDIS_CONNECT_ATTEMPTS  connects tried per access    (default: 3)
"""

from __future__ import annotations

import time
from pathlib import Path

from data_loader.history import FMPClient
from data_retainer.trade_store import CsvTradeStore, RedisTradeStore, TradeStore
from shared.config import env, env_choice
from shared.constants import (
    DEFAULT_SYMBOL, DEFAULT_UNITS, ENTRY_ALWAYS_BUY, ENTRY_CROSS, LOOKBACK_DAYS,
    MODE_COLLECT, MODE_TEST, MODE_TRADE, PREDICTION_TIMEOUT, PREDICTION_URL,
)
from shared.errors import TradingError
from shared.logging import get_logger
from shared.redis_client import heartbeat, trading_paused
from signals.calculator import SignalCalculator
from trade_executor.broker import Broker, PaperBroker
from trade_executor.mt5_client import MT5Client

from .agent import TradingAgent, TickOutcome
from .modes import create_mode

log = get_logger("decision_service")


def build_store() -> TradeStore:
    if env_choice("TRADE_STORE", ("redis", "csv"), "redis") == "csv":
        hist_dir = Path(env("HISTORY_DIR", "./history")).resolve()
        return CsvTradeStore(hist_dir / "trades" / "trade_data.csv")
    return RedisTradeStore()


def build_broker(feed: FMPClient) -> Broker:
    if env_choice("BROKER", ("paper", "mt5"), "paper") == "mt5":
        client = MT5Client()
        client.connect()
        return client
    log.warning("DRY-RUN mode – paper broker fills at the polled quote")
    return PaperBroker(lambda _sym: feed.last)


def build_agent(feed: FMPClient) -> TradingAgent:
    """Wire config → collaborators → agent. Bad config fails here."""
    symbol = env("SYMBOL", DEFAULT_SYMBOL)
    mode_name = env_choice("EXEC_MODE", (MODE_COLLECT, MODE_TEST, MODE_TRADE), MODE_COLLECT)
    mode = create_mode(
        mode_name,
        store=build_store() if mode_name == MODE_COLLECT else None,
        url=env("PREDICTION_URL", PREDICTION_URL),
        timeout=env("PREDICTION_TIMEOUT", PREDICTION_TIMEOUT, float),
    )
    calculator = SignalCalculator(feed, symbol, env("LOOKBACK_DAYS", LOOKBACK_DAYS, int))
    return TradingAgent(
        broker=build_broker(feed),
        calculator=calculator,
        mode=mode,
        instrument=symbol,
        units=env("TRADE_UNITS", DEFAULT_UNITS, int),
        entry_rule=env_choice("ENTRY_RULE", (ENTRY_ALWAYS_BUY, ENTRY_CROSS), ENTRY_ALWAYS_BUY),
    )


def report(outcome: TickOutcome) -> None:
    ctx = {
        "decision": outcome.decision.value,
        "cross": outcome.cross.value if outcome.cross else None,
        "closed_pl": outcome.closed.profit_or_loss if outcome.closed else None,
        "opened": outcome.opened.position_id if outcome.opened else None,
        "reason": outcome.reason or None,
    }
    log.info("%s → %s", outcome.date, outcome.decision.value, extra={"ctx": ctx})


# ─── MAIN LOOP ────────────────────────────────────────────────────────
def main() -> None:
    feed = FMPClient(env("FMP_API_KEY", ""))
    agent = build_agent(feed)
    interval = env("TICK_INTERVAL", 15, int)
    log.info("decision_service up – %s in %s mode", agent.instrument, agent.mode.name)

    heartbeat("decision_service")
    while True:
        t0 = time.time()
        if trading_paused():
            time.sleep(5)
            heartbeat("decision_service")
            continue
        try:
            outcome = agent.next_tick(feed.fetch_quote(agent.instrument))
            if outcome is not None:
                report(outcome)
        except TradingError as exc:
            log.error("%s – %s", agent.instrument, exc)

        heartbeat("decision_service")
        time.sleep(max(1.0, interval - (time.time() - t0)))


if __name__ == "__main__":
    main()
