"""Binance USD-M futures connector."""

from typing import Optional, Dict, Any
import pandas as pd
import ccxt.async_support as ccxt
from loguru import logger

from tradeguard.constants import AVAILABLE_TIMEFRAMES
from tradeguard.data.connectors.base import ExchangeConnector
from tradeguard.data.symbols import to_ccxt_symbol


class BinanceConnector(ExchangeConnector):
    """Binance futures connector using CCXT."""

    TIMEFRAMES = AVAILABLE_TIMEFRAMES
    MAX_LIMIT = 1500

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        timeout: int = 30,
    ):
        """Initialize Binance connector.

        Args:
            api_key: Binance API key (optional, candles are public)
            api_secret: Binance API secret
            timeout: Request timeout in seconds
        """
        super().__init__(exchange_id="binance", api_key=api_key, api_secret=api_secret)

        self.client = ccxt.binanceusdm(
            {
                "apiKey": api_key,
                "secret": api_secret,
                "enableRateLimit": True,
                "timeout": timeout * 1000,
            }
        )

    async def fetch_ohlcv(
        self,
        symbol: str,
        timeframe: str,
        limit: int = 500,
    ) -> pd.DataFrame:
        """Fetch the most recent candles from Binance futures.

        Args:
            symbol: Binance symbol (e.g., 'ETHUSDT')
            timeframe: Timeframe (e.g., '1m', '1h', '1d')
            limit: Maximum number of candles

        Returns:
            DataFrame with OHLCV data
        """
        try:
            self.check_timeframe(timeframe)
            limit = min(limit, self.MAX_LIMIT)

            logger.debug(f"Fetching OHLCV for {symbol} {timeframe} limit {limit}")

            ohlcv = await self.client.fetch_ohlcv(
                symbol=to_ccxt_symbol(symbol),
                timeframe=timeframe,
                limit=limit,
            )

            if not ohlcv:
                logger.warning(f"No data returned for {symbol} {timeframe}")
                return pd.DataFrame()

            df = self.parse_ohlcv(ohlcv, symbol, timeframe)
            logger.debug(f"Fetched {len(df)} candles for {symbol} {timeframe}")
            return df

        except ccxt.NetworkError as e:
            logger.error(f"Network error fetching {symbol} {timeframe}: {e}")
            raise
        except ccxt.ExchangeError as e:
            logger.error(f"Exchange error fetching {symbol} {timeframe}: {e}")
            raise

    async def fetch_ticker(self, symbol: str) -> Dict[str, Any]:
        """Fetch current ticker.

        Args:
            symbol: Binance symbol

        Returns:
            Ticker data
        """
        try:
            ticker = await self.client.fetch_ticker(to_ccxt_symbol(symbol))
            return {
                "provider": self.exchange_id,
                "symbol": symbol,
                "price": float(ticker.get("last") or 0),
                "change_percent": float(ticker.get("percentage") or 0),
                "volume": float(ticker.get("baseVolume") or 0),
                "quote_volume": float(ticker.get("quoteVolume") or 0),
                "timestamp": pd.to_datetime(ticker.get("timestamp"), unit="ms", utc=True),
            }
        except Exception as e:
            logger.error(f"Error fetching ticker for {symbol}: {e}")
            raise

    async def close(self) -> None:
        """Close the exchange connection."""
        await self.client.close()
