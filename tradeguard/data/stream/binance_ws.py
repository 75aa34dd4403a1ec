"""Binance futures kline stream."""

from typing import Dict, Any, Optional
import pandas as pd
from loguru import logger

from tradeguard.data.stream.websocket_manager import WebSocketManager
from tradeguard.data.stream.validation import validate_kline_message


def make_candle(
    open_time_ms: int,
    open_: float,
    high: float,
    low: float,
    close: float,
    volume: float,
    symbol: str,
    timeframe: str,
    closed: Optional[bool] = None,
) -> Dict[str, Any]:
    """Candle dict delivered to ``kline`` callbacks."""
    return {
        "time": open_time_ms // 1000,
        "timestamp": pd.to_datetime(open_time_ms, unit="ms", utc=True),
        "symbol": symbol,
        "timeframe": timeframe,
        "open": float(open_),
        "high": float(high),
        "low": float(low),
        "close": float(close),
        "volume": float(volume),
        "closed": closed,
    }


class BinanceKlineStream(WebSocketManager):
    """Live candles of one Binance futures symbol and interval."""

    BASE_URL = "wss://fstream.binance.com/ws"

    def __init__(self, symbol: str, timeframe: str):
        """Initialize the stream.

        Args:
            symbol: Binance symbol (e.g., 'ETHUSDT')
            timeframe: Kline interval (e.g., '1h')
        """
        self.symbol = symbol.upper()
        self.timeframe = timeframe
        super().__init__(url=f"{self.BASE_URL}/{self.symbol.lower()}@kline_{timeframe}")

    async def on_connect(self) -> None:
        """The stream is selected by URL; nothing to subscribe."""
        logger.info(f"Binance kline stream open for {self.symbol} {self.timeframe}")

    async def on_message(self, data: Dict[str, Any]) -> None:
        """Process incoming message."""
        event_type = data.get("e")
        if event_type == "kline":
            await self._handle_kline(data)
        else:
            logger.debug(f"Unknown event type: {event_type}")

    async def _handle_kline(self, data: Dict[str, Any]) -> None:
        """Validate a kline event and forward the candle, open or closed."""
        try:
            validated = validate_kline_message(data)
        except ValueError as e:
            logger.error(f"Invalid kline message: {e}")
            logger.debug(f"Raw data: {data}")
            return

        k = validated.k
        candle = make_candle(
            k.t, k.o, k.h, k.l, k.c, k.v,
            symbol=validated.s,
            timeframe=k.i,
            closed=k.x,
        )
        await self.emit("kline", candle)
