"""
constants.py – single source of hard-coded names
"""

# instrument defaults
DEFAULT_SYMBOL = "USDJPY"
DEFAULT_UNITS  = 10_000       # currency units per trade
LOT_SIZE       = 100_000      # units per standard lot (MT5 volume)

# indicator windows
MA_FAST, MA_SLOW = 5, 10                  # crossover pair
MA_PERIODS       = (5, 10, 25, 50)
SLOPE_PERIODS    = (10, 25, 50)           # slope window == MA period
MACD_FAST, MACD_SLOW, MACD_SIGNAL = 12, 26, 9
RSI_PERIOD       = 9

LOOKBACK_DAYS    = 60                     # daily bars used for warm-up

# decision modes / entry rules
MODE_COLLECT = "collect"
MODE_TEST    = "test"
MODE_TRADE   = "trade"
ENTRY_ALWAYS_BUY = "always_buy"
ENTRY_CROSS      = "cross"

PREDICTION_URL     = "http://model_service:5000/api/estimator"
PREDICTION_TIMEOUT = 10.0                 # seconds
PREDICTION_UP      = "up"

# Redis keys / templates
KEY_TRADE_DATA    = "collect:trade_data"  # LIST  JSON TradeRecord
KEY_HEARTBEAT     = "heartbeat:{}"        # service-specific
KEY_PAUSE_FLAG    = "flags:trading_paused"
