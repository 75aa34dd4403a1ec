"""Simple and exponential moving averages for chart overlays."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List
import numpy as np
import pandas as pd
from loguru import logger


@dataclass
class MovingAverageConfig:
    """A moving average line shown on the chart."""

    id: str
    type: str  # 'MA' or 'EMA'
    period: int
    color: str
    visible: bool = True

    @property
    def column(self) -> str:
        return f"{self.type.lower()}_{self.period}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MovingAverageConfig":
        return cls(
            id=str(data["id"]),
            type=str(data.get("type", "MA")).upper(),
            period=int(data["period"]),
            color=str(data.get("color", "#CBD5E1")),
            visible=bool(data.get("visible", True)),
        )


def default_moving_averages() -> List[MovingAverageConfig]:
    """Moving averages shown on a fresh chart."""
    return [
        MovingAverageConfig(id="ma1", type="EMA", period=12, color="#34D399"),
        MovingAverageConfig(id="ma2", type="EMA", period=20, color="#F472B6"),
        MovingAverageConfig(id="ma3", type="MA", period=50, color="#CBD5E1"),
        MovingAverageConfig(id="ma4", type="MA", period=200, color="#FF0000"),
    ]


class MovingAverages:
    """Calculate moving averages on close prices."""

    @staticmethod
    def calculate_ma(close: pd.Series, period: int) -> pd.Series:
        """Calculate a simple moving average.

        Args:
            close: Close prices
            period: Window length

        Returns:
            Series starting at the first full window (empty if too short)
        """
        if period <= 0 or len(close) < period:
            return pd.Series(dtype=float)
        return close.astype(float).rolling(window=period).mean().iloc[period - 1 :]

    @staticmethod
    def calculate_ema(close: pd.Series, period: int) -> pd.Series:
        """Calculate an exponential moving average seeded with the SMA.

        Args:
            close: Close prices
            period: EMA period

        Returns:
            Series starting at the first full window (empty if too short)
        """
        if period <= 0 or len(close) < period:
            return pd.Series(dtype=float)

        values = close.astype(float).to_numpy()
        multiplier = 2 / (period + 1)

        ema = np.empty(len(values) - period + 1)
        ema[0] = values[:period].mean()
        for i, value in enumerate(values[period:], start=1):
            ema[i] = (value - ema[i - 1]) * multiplier + ema[i - 1]

        return pd.Series(ema, index=close.index[period - 1 :])

    @classmethod
    def calculate(cls, close: pd.Series, config: MovingAverageConfig) -> pd.Series:
        """Calculate the series described by a config."""
        if config.type.upper() == "EMA":
            return cls.calculate_ema(close, config.period)
        return cls.calculate_ma(close, config.period)

    @classmethod
    def add_moving_averages(
        cls, df: pd.DataFrame, configs: Iterable[MovingAverageConfig]
    ) -> pd.DataFrame:
        """Add one column per visible moving average.

        Args:
            df: DataFrame with a ``close`` column
            configs: Moving average configurations

        Returns:
            Copy of the DataFrame with the added columns
        """
        df = df.copy()
        added = []
        for config in configs:
            if not config.visible:
                continue
            df[config.column] = cls.calculate(df["close"], config)
            added.append(config.column)

        logger.debug(f"Added moving averages: {added}")
        return df
