"""BingX swap kline stream."""

import gzip
import json
import uuid
from typing import Any, Dict, Optional, Union
from loguru import logger

from tradeguard.data.stream.binance_ws import make_candle
from tradeguard.data.stream.validation import validate_bingx_kline_message
from tradeguard.data.stream.websocket_manager import WebSocketManager


class BingXKlineStream(WebSocketManager):
    """Live candles of one BingX symbol and interval.

    BingX gzips every frame and sends a plain ``Ping`` heartbeat that must be
    answered with ``Pong``.
    """

    BASE_URL = "wss://open-api-swap.bingx.com/swap-market"

    def __init__(self, symbol: str, timeframe: str):
        """Initialize the stream.

        Args:
            symbol: BingX symbol (e.g., 'ETH-USDT')
            timeframe: Kline interval (e.g., '1h')
        """
        self.symbol = symbol.upper()
        self.timeframe = timeframe
        super().__init__(url=self.BASE_URL, ping_interval=None, ping_timeout=None)

    @property
    def data_type(self) -> str:
        return f"{self.symbol}@kline_{self.timeframe}"

    def subscription_message(self) -> Dict[str, str]:
        """Build the subscribe request for this symbol and interval."""
        return {"id": str(uuid.uuid4()), "reqType": "sub", "dataType": self.data_type}

    async def on_connect(self) -> None:
        """Subscribe to the kline channel."""
        await self.send(self.subscription_message())
        logger.info(f"BingX kline stream subscribed to {self.data_type}")

    async def decode_message(self, message: Union[str, bytes]) -> Optional[Dict[str, Any]]:
        """Inflate gzip frames and answer heartbeats."""
        if isinstance(message, bytes):
            message = gzip.decompress(message).decode("utf-8")

        if message == "Ping":
            await self.send("Pong")
            return None

        return json.loads(message)

    async def on_message(self, data: Dict[str, Any]) -> None:
        """Process incoming message."""
        if "data" not in data:
            # subscription acks carry only id/code/msg
            logger.debug(f"BingX control message: {data}")
            return

        try:
            validated = validate_bingx_kline_message(data)
        except ValueError as e:
            logger.error(f"Invalid BingX kline message: {e}")
            logger.debug(f"Raw data: {data}")
            return

        symbol = validated.s or self.symbol
        for kline in validated.data:
            candle = make_candle(
                kline.T, kline.o, kline.h, kline.l, kline.c, kline.v,
                symbol=symbol,
                timeframe=self.timeframe,
            )
            await self.emit("kline", candle)
