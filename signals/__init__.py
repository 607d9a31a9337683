"""
signals
=======

Incremental technical indicators for the daily agent.

Every primitive consumes one price (or derived value) per call and
answers `None` until it has seen enough history, so a warm-up replay of
historical closes and live ticks go through exactly the same code.

Modules
-------
primitives.py  – MovingAverage, ExponentialMovingAverage, Slope, MACD, RSI
cross.py       – cross-up / cross-down edge detector for two series
calculator.py  – SignalRecord + SignalCalculator (warm-up & per-tick metrics)
"""
