"""Validation of kline messages received over WebSocket."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, FiniteFloat


class BinanceKline(BaseModel):
    """Inner ``k`` object of a Binance kline event."""

    model_config = ConfigDict(extra="ignore")

    t: int  # open time (ms)
    i: str  # interval
    o: FiniteFloat
    h: FiniteFloat
    l: FiniteFloat
    c: FiniteFloat
    v: FiniteFloat = 0.0
    x: bool = False  # candle closed


class BinanceKlineMessage(BaseModel):
    """Binance futures kline event."""

    model_config = ConfigDict(extra="ignore")

    e: str
    s: str
    k: BinanceKline


class BingXKline(BaseModel):
    """One candle of a BingX kline push."""

    model_config = ConfigDict(extra="ignore")

    T: int  # open time (ms)
    o: FiniteFloat
    h: FiniteFloat
    l: FiniteFloat
    c: FiniteFloat
    v: FiniteFloat = 0.0


class BingXKlineMessage(BaseModel):
    """BingX swap kline push."""

    model_config = ConfigDict(extra="ignore")

    dataType: str
    s: Optional[str] = None
    data: List[BingXKline]


def validate_kline_message(data: Dict[str, Any]) -> BinanceKlineMessage:
    """Validate a Binance kline event.

    Raises:
        ValueError: If the message is malformed
    """
    message = BinanceKlineMessage.model_validate(data)
    if message.e != "kline":
        raise ValueError(f"Not a kline event: {message.e}")
    return message


def validate_bingx_kline_message(data: Dict[str, Any]) -> BingXKlineMessage:
    """Validate a BingX kline push.

    A single candle sent as a dict instead of a list is accepted.

    Raises:
        ValueError: If the message is malformed
    """
    payload = dict(data)
    if isinstance(payload.get("data"), dict):
        payload["data"] = [payload["data"]]
    message = BingXKlineMessage.model_validate(payload)
    if "@kline_" not in message.dataType:
        raise ValueError(f"Not a kline push: {message.dataType}")
    return message
