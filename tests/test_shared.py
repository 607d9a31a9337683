import json
import logging
import sys
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
import redis

from shared import redis_client
from shared.config import env, env_choice
from shared.errors import ConfigError
from shared.logging import JsonFormatter
from shared.utils import pip_size, to_utc


# ───── config ─────────────────────────────────────────────────────────
class TestEnv:

    def test_default_when_unset_or_empty(self, monkeypatch):
        monkeypatch.delenv("TRADE_UNITS", raising=False)
        assert env("TRADE_UNITS", 10000, int) == 10000
        monkeypatch.setenv("TRADE_UNITS", "")
        assert env("TRADE_UNITS", 10000, int) == 10000

    def test_cast(self, monkeypatch):
        monkeypatch.setenv("PREDICTION_TIMEOUT", "2.5")
        monkeypatch.setenv("DRY_RUN", "Yes")
        assert env("PREDICTION_TIMEOUT", 10.0, float) == 2.5
        assert env("DRY_RUN", False, bool) is True

    def test_bad_cast_is_config_error(self, monkeypatch):
        monkeypatch.setenv("TRADE_UNITS", "lots")
        with pytest.raises(ConfigError):
            env("TRADE_UNITS", 10000, int)

    def test_choice_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("EXEC_MODE", " Trade ")
        assert env_choice("EXEC_MODE", ("collect", "test", "trade"), "collect") == "trade"

    def test_unknown_choice(self, monkeypatch):
        monkeypatch.setenv("EXEC_MODE", "yolo")
        with pytest.raises(ConfigError):
            env_choice("EXEC_MODE", ("collect", "test", "trade"), "collect")


# ───── logging ────────────────────────────────────────────────────────
def test_json_formatter_carries_context():
    rec = logging.LogRecord("decision_service", logging.INFO, __file__, 1,
                            "%s → %s", ("2024-03-01", "traded"), None)
    rec.ctx = {"decision": "traded", "closed_pl": 12.5}
    out = json.loads(JsonFormatter().format(rec))

    assert out["lvl"] == "INFO" and out["src"] == "decision_service"
    assert out["msg"] == "2024-03-01 → traded"
    assert out["ctx"] == {"decision": "traded", "closed_pl": 12.5}
    assert "exc" not in out


def test_json_formatter_includes_traceback():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        rec = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    out = json.loads(JsonFormatter().format(rec))
    assert "RuntimeError: boom" in out["exc"]
    assert "ctx" not in out


# ───── utils ──────────────────────────────────────────────────────────
def test_pip_size():
    assert pip_size("USDJPY") == 0.01
    assert pip_size("EURUSD") == 0.0001


@pytest.mark.parametrize("val", [1709280000, "1709280000", "2024-03-01 08:00:00",
                                 "2024-03-01T17:00:00+09:00"])
def test_to_utc(val):
    assert to_utc(val) == datetime(2024, 3, 1, 8, tzinfo=timezone.utc)


def test_to_utc_rejects_garbage():
    with pytest.raises(ValueError):
        to_utc("not a date")


# ───── redis helpers ──────────────────────────────────────────────────
@pytest.fixture
def fake_rds(monkeypatch):
    client = Mock()
    monkeypatch.setattr(redis_client, "rds", client)
    return client


def test_pause_flag(fake_rds):
    fake_rds.get.return_value = "1"
    assert redis_client.trading_paused() is True
    fake_rds.get.return_value = None
    assert redis_client.trading_paused() is False


def test_redis_outage_counts_as_paused(fake_rds):
    fake_rds.get.side_effect = redis.ConnectionError("down")
    assert redis_client.trading_paused() is True


def test_heartbeat_failure_is_logged_not_raised(fake_rds):
    fake_rds.set.side_effect = redis.ConnectionError("down")
    redis_client.heartbeat("decision_service")
    assert fake_rds.set.call_args.args[0] == "heartbeat:decision_service"


def unreachable_redis(monkeypatch, attempts="2"):
    monkeypatch.setenv("REDIS_URL", "redis://127.0.0.1:1/0")
    monkeypatch.setenv("REDIS_CONNECT_ATTEMPTS", attempts)
    monkeypatch.setenv("REDIS_RETRY_DELAY", "0")
    conn = Mock()
    conn.ping.side_effect = redis.ConnectionError("Connection refused")
    from_url = Mock(return_value=conn)
    monkeypatch.setattr(redis_client.redis.Redis, "from_url", from_url)
    sleep = Mock()
    monkeypatch.setattr(redis_client.time, "sleep", sleep)
    return from_url, sleep


def test_lazy_connect_gives_up_after_bounded_attempts(monkeypatch):
    from_url, sleep = unreachable_redis(monkeypatch, attempts="3")
    lazy = redis_client._LazyRedis()

    with pytest.raises(redis.ConnectionError):
        lazy.rpush("collect:trade_data", "{}")

    assert from_url.call_count == 3
    assert sleep.call_count == 2
    assert from_url.call_args.args[0] == "redis://127.0.0.1:1/0"


def test_lazy_connect_retries_on_next_access(monkeypatch):
    from_url, _ = unreachable_redis(monkeypatch, attempts="1")
    lazy = redis_client._LazyRedis()
    with pytest.raises(redis.ConnectionError):
        lazy.get("flags:trading_paused")

    healthy = Mock()
    healthy.get.return_value = "0"
    from_url.return_value = healthy
    assert lazy.get("flags:trading_paused") == "0"
    assert from_url.call_count == 2
