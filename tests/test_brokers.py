from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from shared.errors import BrokerError
from trade_executor.broker import Direction, PaperBroker
from trade_executor.mt5_client import MT5Client

from conftest import make_tick

DONE = 10009
T_OPEN = 1709280000          # 2024-03-01 08:00 UTC
T_CLOSE = 1709366400         # 2024-03-02 08:00 UTC


# ───── paper broker ───────────────────────────────────────────────────
class TestPaperBroker:

    def test_long_round_trip(self):
        quotes = iter([make_tick(0, 150.00), make_tick(1, 150.25)])
        broker = PaperBroker(lambda _sym: next(quotes))

        pos = broker.open_position("USDJPY", 10000, Direction.BUY)
        closed = broker.close_position(pos.position_id)

        assert not pos.closed and closed.closed
        assert closed.profit_or_loss == pytest.approx(2500.0)
        assert closed.entered_at == make_tick(0, 0).timestamp
        assert closed.exited_at == make_tick(1, 0).timestamp

    def test_short_profits_when_price_falls(self):
        quotes = iter([make_tick(0, 150.00), make_tick(1, 149.50)])
        broker = PaperBroker(lambda _sym: next(quotes))
        pos = broker.open_position("USDJPY", 10000, "sell")
        closed = broker.close_position(pos.position_id)
        assert closed.direction is Direction.SELL
        assert closed.profit_or_loss == pytest.approx(5000.0)

    def test_no_quote_is_a_broker_error(self):
        with pytest.raises(BrokerError):
            PaperBroker(lambda _sym: None).open_position("USDJPY", 1, Direction.BUY)

    def test_closing_twice_fails(self):
        broker = PaperBroker(lambda _sym: make_tick(0, 150.0))
        pos = broker.open_position("USDJPY", 1, Direction.BUY)
        broker.close_position(pos.position_id)
        with pytest.raises(BrokerError):
            broker.close_position(pos.position_id)


# ───── MT5 adapter ────────────────────────────────────────────────────
def fake_mt5():
    api = Mock()
    api.TRADE_RETCODE_DONE = DONE
    api.ORDER_TYPE_BUY = 0
    api.ORDER_TYPE_SELL = 1
    api.initialize.return_value = True
    api.account_info.return_value = SimpleNamespace(login=42, balance=1000.0)
    api.symbol_info_tick.return_value = SimpleNamespace(bid=150.10, ask=150.12, time=T_OPEN)
    api.order_send.return_value = SimpleNamespace(retcode=DONE, order=555, price=150.12)
    return api


@pytest.fixture
def mt5_client():
    client = MT5Client(api=fake_mt5())
    client.connect()
    return client


class TestMT5Client:

    def test_requires_connect(self):
        with pytest.raises(BrokerError):
            MT5Client(api=fake_mt5()).open_position("USDJPY", 10000, Direction.BUY)

    def test_initialize_failure(self):
        api = fake_mt5()
        api.initialize.return_value = False
        with pytest.raises(BrokerError):
            MT5Client(api=api).connect()

    def test_open_sends_market_order_in_lots(self, mt5_client):
        pos = mt5_client.open_position("USDJPY", 10000, Direction.BUY)

        req = mt5_client.mt5.order_send.call_args.args[0]
        assert req["volume"] == pytest.approx(0.1)
        assert req["type"] == 0 and req["price"] == 150.12
        assert pos.position_id == "555"
        assert pos.entry_price == 150.12
        assert pos.entered_at == datetime(2024, 3, 1, 8, tzinfo=timezone.utc)

    def test_rejected_order_raises(self, mt5_client):
        mt5_client.mt5.order_send.return_value = SimpleNamespace(retcode=10019, order=0)
        with pytest.raises(BrokerError):
            mt5_client.open_position("USDJPY", 10000, Direction.BUY)

    def test_close_reports_realised_pl(self, mt5_client):
        api = mt5_client.mt5
        api.positions_get.return_value = [SimpleNamespace(
            symbol="USDJPY", type=0, volume=0.1, price_open=150.12,
            time=T_OPEN, profit=1.0)]
        api.history_deals_get.return_value = [
            SimpleNamespace(profit=0.0, swap=0.0, commission=-0.5, time=T_OPEN),
            SimpleNamespace(profit=20.0, swap=0.3, commission=-0.5, time=T_CLOSE),
        ]

        closed = mt5_client.close_position("555")

        req = api.order_send.call_args.args[0]
        assert req["position"] == 555 and req["type"] == 1
        assert closed.direction is Direction.BUY
        assert closed.units == 10000
        assert closed.profit_or_loss == pytest.approx(19.3)
        assert closed.exited_at == datetime(2024, 3, 2, 8, tzinfo=timezone.utc)

    def test_close_unknown_position(self, mt5_client):
        mt5_client.mt5.positions_get.return_value = ()
        with pytest.raises(BrokerError):
            mt5_client.close_position("999")
