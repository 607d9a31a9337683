"""
decision_service
================

Daily trading agent for a single instrument (USDJPY by default).

Data-flow
---------
1. Poll the latest quote (data_loader) – one `Tick`.

2. On the first tick of a calendar date compute the signal record
   (MA slopes, MACD difference, RSI, MA estrangement) after a one-time
   60-day warm-up.

3. Close yesterday's position, let the execution mode decide, and open
   a fixed-size position at the broker (trade_executor).

Execution modes (`EXEC_MODE`)
-----------------------------
collect   trade every day, store result + entry signals (data_retainer)
test      trade every day, store nothing
trade     trade only when the prediction service answers "up"
"""
