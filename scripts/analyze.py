"""Fetch candles, request an AI analysis and print the key levels."""

import asyncio
import argparse
import json
import sys

from dotenv import load_dotenv
from loguru import logger

from tradeguard.analysis.overlays import build_overlays
from tradeguard.analytics.fibonacci import impulse_levels
from tradeguard.config import configure_logging, get_config
from tradeguard.constants import AVAILABLE_TIMEFRAMES, DATA_SOURCES
from tradeguard.data.connectors import get_connector
from tradeguard.data.symbols import consistent_symbol
from tradeguard.exceptions import TradeGuardError
from tradeguard.llm import AnalysisRequest, GeminiAnalyst
from tradeguard.ui.formatting import format_price


async def fetch_candles(data_source: str, symbol: str, timeframe: str, limit: int):
    config = get_config()
    exchange = config.binance if data_source == "binance" else config.bingx
    connector = get_connector(
        data_source,
        api_key=exchange.api_key,
        api_secret=exchange.api_secret,
        timeout=config.request_timeout,
    )
    async with connector:
        return await connector.fetch_ohlcv(symbol, timeframe, limit=limit)


def print_report(result) -> None:
    general = result.analisis_general
    print(f"\n{general.simbolo} {general.temporalidad_principal_analisis}")
    print(f"Sesgo: {general.sesgo_direccional_general}")
    print(f"Resumen: {result.conclusion_recomendacion.resumen_ejecutivo}")

    fib = result.analisis_fibonacci
    for label, payload in (("HTF", fib.htf if fib else None), ("LTF", fib.ltf if fib else None)):
        if payload is None:
            continue
        retracement_levels, extension_levels = impulse_levels(payload.to_impulse())
        print(f"\nFibonacci {label} ({payload.temporalidad_analizada})")
        for level in retracement_levels + extension_levels:
            print(f"  {level.label:<22} ${format_price(level.price)}")

    overlays = build_overlays(result)
    print(f"\nChart overlays: {len(overlays.lines)} lines, {len(overlays.markers)} markers")
    for line in overlays.lines:
        print(f"  {line.title:<40} ${format_price(line.price)}")


def main():
    """Main entry point."""
    load_dotenv()
    config = get_config()
    configure_logging(config.logging)
    config.log_summary()

    parser = argparse.ArgumentParser(description="AI chart analysis")
    parser.add_argument("--source", type=str, default=config.default_data_source, choices=list(DATA_SOURCES))
    parser.add_argument("--symbol", type=str, default=config.default_symbol)
    parser.add_argument("--timeframe", type=str, default=config.default_timeframe, choices=AVAILABLE_TIMEFRAMES)
    parser.add_argument("--json", action="store_true", help="Print the raw analysis as JSON")

    args = parser.parse_args()
    symbol = consistent_symbol(args.symbol, args.source)

    try:
        candles = asyncio.run(fetch_candles(args.source, symbol, args.timeframe, config.candle_limit))
        if candles.empty:
            logger.error(f"No candles for {symbol} {args.timeframe}")
            sys.exit(1)

        last = candles.iloc[-1]
        analyst = GeminiAnalyst(config.llm)
        result = analyst.analyze(
            AnalysisRequest.from_chart(symbol, args.timeframe, float(last["close"]), float(last["volume"]))
        )
    except TradeGuardError as e:
        logger.error(str(e))
        sys.exit(1)

    if args.json:
        print(json.dumps(result.model_dump(exclude_none=True), indent=2, ensure_ascii=False))
    else:
        print_report(result)


if __name__ == "__main__":
    main()
