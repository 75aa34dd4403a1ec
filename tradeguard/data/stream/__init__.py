"""WebSocket streaming infrastructure."""

from tradeguard.data.stream.websocket_manager import WebSocketManager
from tradeguard.data.stream.binance_ws import BinanceKlineStream
from tradeguard.data.stream.bingx_ws import BingXKlineStream
from tradeguard.exceptions import ExchangeDataError

STREAMS = {
    "binance": BinanceKlineStream,
    "bingx": BingXKlineStream,
}


def get_kline_stream(data_source: str, symbol: str, timeframe: str) -> WebSocketManager:
    """Create the kline stream for a data source."""
    try:
        stream_cls = STREAMS[data_source]
    except KeyError:
        raise ExchangeDataError(f"Unsupported data source: {data_source}") from None
    return stream_cls(symbol, timeframe)


__all__ = ["WebSocketManager", "BinanceKlineStream", "BingXKlineStream", "get_kline_stream"]
