"""
trade_executor
==============

Broker collaborator for the agent.

* `broker.py`     – `Direction`, `Position`, the `Broker` contract and a
                    `PaperBroker` that fills at the current quote (dry run).
* `mt5_client.py` – the same contract on a MetaTrader 5 (MT5) account.

Both raise `BrokerError` on any venue / network failure; the agent keeps
its previous position state when that happens.
"""
