"""Chart preferences and template records."""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from tradeguard.analytics.indicators.moving_averages import (
    MovingAverageConfig,
    default_moving_averages,
)
from tradeguard.constants import (
    DARK_CHART_BACKGROUND,
    DEFAULT_DATA_SOURCE,
    DEFAULT_FAVORITE_TIMEFRAMES,
    DEFAULT_SIGNALS_OPACITY,
    DEFAULT_SYMBOL,
    DEFAULT_TIMEFRAME,
    DEFAULT_W_SIGNAL_COLOR,
    DEFAULT_W_SIGNAL_OPACITY,
    LIGHT_CHART_BACKGROUND,
)

PREFERENCES_VERSION = 1


def default_background(theme: str) -> str:
    """Chart pane background for a theme."""
    return DARK_CHART_BACKGROUND if theme == "dark" else LIGHT_CHART_BACKGROUND


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def _moving_averages(raw: Optional[List[Dict[str, Any]]]) -> List[MovingAverageConfig]:
    if raw is None:
        return default_moving_averages()
    return [MovingAverageConfig.from_dict(item) for item in raw]


@dataclass
class ChartPreferences:
    """Everything the dashboard remembers between sessions."""

    data_source: str = DEFAULT_DATA_SOURCE
    symbol: str = DEFAULT_SYMBOL
    timeframe: str = DEFAULT_TIMEFRAME
    theme: str = "dark"
    moving_averages: List[MovingAverageConfig] = field(default_factory=default_moving_averages)
    chart_pane_background_color: str = DARK_CHART_BACKGROUND
    volume_pane_height: int = 0
    show_ai_drawings: bool = True
    w_signal_color: str = DEFAULT_W_SIGNAL_COLOR
    w_signal_opacity: int = DEFAULT_W_SIGNAL_OPACITY
    show_w_signals: bool = True
    signals_opacity: int = DEFAULT_SIGNALS_OPACITY
    show_ltf_fibonacci: bool = True
    favorite_timeframes: List[str] = field(
        default_factory=lambda: list(DEFAULT_FAVORITE_TIMEFRAMES)
    )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["version"] = PREFERENCES_VERSION
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChartPreferences":
        """Build preferences from stored data; missing keys keep defaults."""
        values = _known_fields(cls, data)
        values["moving_averages"] = _moving_averages(data.get("moving_averages"))
        if "chart_pane_background_color" not in data:
            values["chart_pane_background_color"] = default_background(
                values.get("theme", "dark")
            )
        return cls(**values)


@dataclass
class TemplateConfiguration:
    """Settings captured by a chart template."""

    moving_averages: List[MovingAverageConfig] = field(default_factory=default_moving_averages)
    theme: str = "dark"
    chart_pane_background_color: str = DARK_CHART_BACKGROUND
    volume_pane_height: int = 0
    w_signal_color: str = DEFAULT_W_SIGNAL_COLOR
    w_signal_opacity: int = DEFAULT_W_SIGNAL_OPACITY
    show_w_signals: bool = True
    show_ai_drawings: bool = True
    favorite_timeframes: List[str] = field(
        default_factory=lambda: list(DEFAULT_FAVORITE_TIMEFRAMES)
    )
    default_data_source: Optional[str] = None
    default_symbol: Optional[str] = None
    default_timeframe: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TemplateConfiguration":
        values = _known_fields(cls, data)
        values["moving_averages"] = _moving_averages(data.get("moving_averages"))
        return cls(**values)


@dataclass
class ChartTemplate:
    """A named, saved configuration."""

    id: str
    name: str
    configuration: TemplateConfiguration
    created_at: str
    last_modified: str
    description: Optional[str] = None
    is_default: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChartTemplate":
        values = _known_fields(cls, data)
        values["configuration"] = TemplateConfiguration.from_dict(data.get("configuration") or {})
        return cls(**values)
