"""Stream live klines and log them."""

import asyncio
import argparse
import json
from pathlib import Path
from typing import Optional

import pandas as pd
from dotenv import load_dotenv
from loguru import logger

from tradeguard.config import configure_logging, get_config
from tradeguard.constants import AVAILABLE_TIMEFRAMES, DATA_SOURCES
from tradeguard.data.connectors import get_connector, merge_candle
from tradeguard.data.stream import get_kline_stream
from tradeguard.data.symbols import consistent_symbol


class LiveCandleLogger:
    """Keep a rolling candle window up to date from a kline stream."""

    def __init__(self, candles: pd.DataFrame, output: Optional[Path] = None, window: int = 500):
        """Initialize the logger.

        Args:
            candles: Seed candles from the REST API
            output: Optional JSON-lines file receiving every closed candle
            window: Number of candles kept in memory
        """
        self.candles = candles
        self.output = output
        self.window = window
        self.updates = 0

    async def handle_kline(self, candle: dict) -> None:
        """Apply a streamed candle and log it.

        Args:
            candle: Candle data from WebSocket
        """
        self.updates += 1
        self.candles = merge_candle(self.candles, candle).tail(self.window).reset_index(drop=True)

        state = "closed" if candle.get("closed") else "open"
        logger.info(
            f"{candle['symbol']} {candle['timeframe']} {candle['timestamp']} ({state}) "
            f"O={candle['open']} H={candle['high']} L={candle['low']} "
            f"C={candle['close']} V={candle['volume']}"
        )

        if self.output and candle.get("closed"):
            with open(self.output, "a") as f:
                f.write(json.dumps(candle, default=str) + "\n")


async def run(data_source: str, symbol: str, timeframe: str, output: Optional[Path]) -> None:
    config = get_config()
    exchange = config.binance if data_source == "binance" else config.bingx

    connector = get_connector(
        data_source,
        api_key=exchange.api_key,
        api_secret=exchange.api_secret,
        timeout=config.request_timeout,
    )
    async with connector:
        candles = await connector.fetch_ohlcv(symbol, timeframe, limit=config.candle_limit)
    logger.info(f"Loaded {len(candles)} historical candles for {symbol} {timeframe}")

    handler = LiveCandleLogger(candles, output=output, window=config.candle_limit)
    stream = get_kline_stream(data_source, symbol, timeframe)
    stream.register_callback("kline", handler.handle_kline)

    try:
        await stream.connect()
        await stream.receive_loop()
    finally:
        await stream.disconnect()
        logger.info(
            f"Stream stopped after {handler.updates} updates "
            f"({stream.frames_received} frames, {stream.reconnects} reconnects)"
        )


def main():
    """Main entry point."""
    load_dotenv()
    config = get_config()
    configure_logging(config.logging)
    config.log_summary()

    parser = argparse.ArgumentParser(description="Live kline streaming")
    parser.add_argument(
        "--source",
        type=str,
        default=config.default_data_source,
        choices=list(DATA_SOURCES),
        help="Data source",
    )
    parser.add_argument(
        "--symbol",
        type=str,
        default=config.default_symbol,
        help="Symbol (e.g., ETHUSDT or ETH-USDT)",
    )
    parser.add_argument(
        "--timeframe",
        type=str,
        default=config.default_timeframe,
        choices=AVAILABLE_TIMEFRAMES,
        help="Kline interval",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Append closed candles to this JSON-lines file",
    )

    args = parser.parse_args()
    symbol = consistent_symbol(args.symbol, args.source)

    logger.info(f"Starting live stream for {symbol} {args.timeframe} on {args.source}...")
    try:
        asyncio.run(run(args.source, symbol, args.timeframe, args.output))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
