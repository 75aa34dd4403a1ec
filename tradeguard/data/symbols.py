"""Symbol conventions across data sources.

Binance writes perpetual symbols as ``BTCUSDT``, BingX as ``BTC-USDT`` and
ccxt as ``BTC/USDT:USDT``.
"""

import re

_CROSS_LISTED = {
    "BTCUSDT": "BTC-USDT",
    "ETHUSDT": "ETH-USDT",
    "SOLUSDT": "SOL-USDT",
}

_QUOTE_ASSETS = ("USDT", "USDC", "BUSD")


def consistent_symbol(symbol: str, data_source: str) -> str:
    """Rewrite a symbol into the data source's own convention."""
    normalized = symbol.upper()
    if data_source == "bingx":
        return _CROSS_LISTED.get(normalized, normalized)
    if data_source == "binance":
        for binance_symbol, bingx_symbol in _CROSS_LISTED.items():
            if normalized == bingx_symbol:
                return binance_symbol
    return normalized


def display_symbol(symbol: str) -> str:
    """Human readable pair, e.g. ``ETH/USDT``."""
    if "/" in symbol:
        return symbol
    if "-" in symbol:
        return symbol.replace("-", "/", 1)
    if symbol.endswith("USDT"):
        return re.sub(r"USDT$", "/USDT", symbol)
    return symbol


def to_ccxt_symbol(symbol: str) -> str:
    """Unified ccxt symbol of a linear perpetual contract."""
    normalized = symbol.upper()
    if "/" in normalized:
        base, _, quote = normalized.partition("/")
        quote = quote.split(":")[0]
        return f"{base}/{quote}:{quote}"
    if "-" in normalized:
        base, _, quote = normalized.partition("-")
        return f"{base}/{quote}:{quote}"
    for quote in _QUOTE_ASSETS:
        if normalized.endswith(quote) and len(normalized) > len(quote):
            base = normalized[: -len(quote)]
            return f"{base}/{quote}:{quote}"
    return normalized
