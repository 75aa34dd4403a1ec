"""Exchange connector implementations."""

from typing import Optional

from tradeguard.data.connectors.base import ExchangeConnector, merge_candle
from tradeguard.data.connectors.binance import BinanceConnector
from tradeguard.data.connectors.bingx import BingXConnector
from tradeguard.exceptions import ExchangeDataError

CONNECTORS = {
    "binance": BinanceConnector,
    "bingx": BingXConnector,
}


def get_connector(
    data_source: str,
    api_key: Optional[str] = None,
    api_secret: Optional[str] = None,
    timeout: int = 30,
) -> ExchangeConnector:
    """Create the connector for a data source."""
    try:
        connector_cls = CONNECTORS[data_source]
    except KeyError:
        raise ExchangeDataError(f"Unsupported data source: {data_source}") from None
    return connector_cls(api_key=api_key, api_secret=api_secret, timeout=timeout)


__all__ = ["ExchangeConnector", "BinanceConnector", "BingXConnector", "get_connector", "merge_candle"]
