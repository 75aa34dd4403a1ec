"""Data layer for exchange candles and live streams."""

from tradeguard.data.connectors import ExchangeConnector, get_connector
from tradeguard.data.stream import WebSocketManager, get_kline_stream

__all__ = ["ExchangeConnector", "get_connector", "WebSocketManager", "get_kline_stream"]
