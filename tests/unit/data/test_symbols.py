"""Tests for symbol conventions."""

import pytest

from tradeguard.data.symbols import consistent_symbol, display_symbol, to_ccxt_symbol


@pytest.mark.parametrize(
    "symbol,source,expected",
    [
        ("ETHUSDT", "bingx", "ETH-USDT"),
        ("btcusdt", "bingx", "BTC-USDT"),
        ("XAUUSD", "bingx", "XAUUSD"),
        ("SOL-USDT", "binance", "SOLUSDT"),
        ("ADAUSDT", "binance", "ADAUSDT"),
        ("ETH-USDT", "bingx", "ETH-USDT"),
    ],
)
def test_consistent_symbol(symbol, source, expected):
    assert consistent_symbol(symbol, source) == expected


@pytest.mark.parametrize(
    "symbol,expected",
    [
        ("ETHUSDT", "ETH/USDT"),
        ("ETH-USDT", "ETH/USDT"),
        ("ETH/USDT", "ETH/USDT"),
        ("EURUSD", "EURUSD"),
    ],
)
def test_display_symbol(symbol, expected):
    assert display_symbol(symbol) == expected


@pytest.mark.parametrize(
    "symbol,expected",
    [
        ("ETHUSDT", "ETH/USDT:USDT"),
        ("eth-usdt", "ETH/USDT:USDT"),
        ("BTC/USDC", "BTC/USDC:USDC"),
        ("BTC/USDT:USDT", "BTC/USDT:USDT"),
        ("XAUUSD", "XAUUSD"),
    ],
)
def test_to_ccxt_symbol(symbol, expected):
    assert to_ccxt_symbol(symbol) == expected
