"""Base exchange connector protocol and utilities."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
import numpy as np
import pandas as pd
from loguru import logger

from tradeguard.config import mask_key
from tradeguard.exceptions import ExchangeDataError

OHLCV_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]


class ExchangeConnector(ABC):
    """Abstract base class for candle data connectors."""

    TIMEFRAMES: List[str] = []

    def __init__(
        self,
        exchange_id: str,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
    ):
        """Initialize exchange connector.

        Args:
            exchange_id: Data source identifier ('binance' or 'bingx')
            api_key: API key for authenticated requests
            api_secret: API secret for authenticated requests
        """
        self.exchange_id = exchange_id
        self._api_key = api_key
        self._api_secret = api_secret

        if api_key:
            logger.debug(f"{exchange_id} initialized with API key: {mask_key(api_key)}")

    @property
    def api_key(self) -> Optional[str]:
        """Get API key."""
        return self._api_key

    @abstractmethod
    async def fetch_ohlcv(
        self,
        symbol: str,
        timeframe: str,
        limit: int = 500,
    ) -> pd.DataFrame:
        """Fetch the most recent candles.

        Args:
            symbol: Symbol in the data source's convention (e.g. 'ETHUSDT')
            timeframe: Candle timeframe (e.g. '1m', '1h', '1d')
            limit: Maximum number of candles to fetch

        Returns:
            DataFrame with columns: timestamp, open, high, low, close, volume
        """
        pass

    @abstractmethod
    async def fetch_ticker(self, symbol: str) -> Dict[str, Any]:
        """Fetch current ticker information.

        Args:
            symbol: Symbol in the data source's convention

        Returns:
            Dictionary with last price, change percent and volumes
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying client."""
        pass

    def parse_ohlcv(
        self, raw_data: List[Any], symbol: str, timeframe: str
    ) -> pd.DataFrame:
        """Parse raw kline rows into a clean DataFrame.

        Rows with non-numeric or non-finite OHLC values are dropped and the
        result is sorted by timestamp.

        Args:
            raw_data: Rows of [timestamp_ms, open, high, low, close, volume, ...]
            symbol: Symbol the rows belong to
            timeframe: Timeframe of the rows

        Returns:
            Formatted DataFrame
        """
        if not raw_data:
            return pd.DataFrame(columns=OHLCV_COLUMNS)

        df = pd.DataFrame([row[:6] for row in raw_data], columns=OHLCV_COLUMNS)
        for col in OHLCV_COLUMNS:
            df[col] = pd.to_numeric(df[col], errors="coerce")

        price_cols = ["timestamp", "open", "high", "low", "close"]
        finite = np.isfinite(df[price_cols]).all(axis=1)
        volume_ok = df["volume"].isna() | np.isfinite(df["volume"])
        dropped = int((~(finite & volume_ok)).sum())
        if dropped:
            logger.warning(f"Dropped {dropped} malformed candles for {symbol} {timeframe}")
        df = df[finite & volume_ok].copy()

        df["timestamp"] = pd.to_datetime(df["timestamp"].astype("int64"), unit="ms", utc=True)
        df = df.drop_duplicates(subset=["timestamp"], keep="last")
        df = df.sort_values("timestamp").reset_index(drop=True)

        df["exchange"] = self.exchange_id
        df["symbol"] = symbol
        df["timeframe"] = timeframe
        return df

    @staticmethod
    def validate_dataframe(df: pd.DataFrame) -> tuple[bool, List[str]]:
        """Validate an OHLCV DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors = []

        if df.empty:
            errors.append("DataFrame is empty")
            return False, errors

        missing_cols = [col for col in OHLCV_COLUMNS if col not in df.columns]
        if missing_cols:
            errors.append(f"Missing required columns: {missing_cols}")
            return False, errors

        invalid_high = df[df["high"] < df["low"]]
        if not invalid_high.empty:
            errors.append(f"Found {len(invalid_high)} rows where high < low")

        invalid_volume = df[df["volume"] < 0]
        if not invalid_volume.empty:
            errors.append(f"Found {len(invalid_volume)} rows with negative volume")

        if not df["timestamp"].is_monotonic_increasing:
            errors.append("Timestamps are not sorted")

        is_valid = len(errors) == 0
        if not is_valid:
            logger.warning(f"DataFrame validation failed: {'; '.join(errors)}")

        return is_valid, errors

    def check_timeframe(self, timeframe: str) -> None:
        """Raise ExchangeDataError for timeframes the data source does not serve."""
        if self.TIMEFRAMES and timeframe not in self.TIMEFRAMES:
            raise ExchangeDataError(f"Unsupported timeframe for {self.exchange_id}: {timeframe}")

    @staticmethod
    def timeframe_to_seconds(timeframe: str) -> int:
        """Convert timeframe string to seconds.

        Args:
            timeframe: Timeframe string (e.g., '1m', '1h', '1d', '1M')

        Returns:
            Number of seconds in the timeframe
        """
        multipliers = {
            "m": 60,
            "h": 3600,
            "d": 86400,
            "w": 604800,
            "M": 2592000,
        }
        value = int(timeframe[:-1])
        unit = timeframe[-1]
        return value * multipliers.get(unit, 60)

    @staticmethod
    def timeframe_to_milliseconds(timeframe: str) -> int:
        """Convert timeframe string to milliseconds."""
        return ExchangeConnector.timeframe_to_seconds(timeframe) * 1000

    async def __aenter__(self) -> "ExchangeConnector":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()


def merge_candle(df: pd.DataFrame, candle: Dict[str, Any]) -> pd.DataFrame:
    """Apply a streamed candle to a candles DataFrame.

    A candle with the same open time replaces the last row; a newer one is
    appended. Older candles are ignored.

    Args:
        df: Candles sorted by timestamp
        candle: Candle dict as emitted by the kline streams

    Returns:
        Updated copy of the DataFrame
    """
    row = {col: candle[col] for col in OHLCV_COLUMNS}
    for col in ("exchange", "symbol", "timeframe"):
        if col in df.columns:
            row[col] = df[col].iloc[-1] if not df.empty else candle.get(col)

    if df.empty:
        return pd.DataFrame([row])

    last_ts = df["timestamp"].iloc[-1]
    if row["timestamp"] < last_ts:
        logger.debug(f"Ignoring stale candle at {row['timestamp']}")
        return df

    if row["timestamp"] == last_ts:
        updated = df.copy()
        for col, value in row.items():
            updated.iat[len(updated) - 1, updated.columns.get_loc(col)] = value
        return updated

    return pd.concat([df, pd.DataFrame([row])], ignore_index=True)
