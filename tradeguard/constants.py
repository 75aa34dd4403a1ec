"""Shared constants for symbols, timeframes and data sources."""

DEFAULT_SYMBOL = "ETHUSDT"
DEFAULT_TIMEFRAME = "1h"
DEFAULT_DATA_SOURCE = "binance"

DATA_SOURCES = {
    "binance": "Binance Futures",
    "bingx": "BingX Futures",
}

AVAILABLE_SYMBOLS = {
    "binance": ["BTCUSDT", "ETHUSDT", "SOLUSDT", "ADAUSDT", "LINKUSDT"],
    "bingx": ["BTC-USDT", "ETH-USDT", "XAUUSD", "EURUSD", "USOIL"],
}

QUICK_SELECT_TIMEFRAMES = ["1m", "3m", "5m", "15m", "1h", "4h", "1d", "1w"]
DEFAULT_FAVORITE_TIMEFRAMES = ["15m", "1h", "4h", "1d"]
AVAILABLE_TIMEFRAMES = [
    "1m", "3m", "5m", "15m", "30m",
    "1h", "2h", "4h", "6h", "8h", "12h",
    "1d", "3d", "1w", "1M",
]

DARK_CHART_BACKGROUND = "#18191B"
LIGHT_CHART_BACKGROUND = "#FFFFFF"
DEFAULT_W_SIGNAL_COLOR = "#243EA8"
DEFAULT_W_SIGNAL_OPACITY = 70
DEFAULT_SIGNALS_OPACITY = 65
