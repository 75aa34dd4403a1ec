"""JSON-file storage for chart preferences."""

import json
from dataclasses import replace
from pathlib import Path
from typing import Union

from loguru import logger

from tradeguard.data.symbols import consistent_symbol
from tradeguard.preferences.models import (
    PREFERENCES_VERSION,
    ChartPreferences,
    TemplateConfiguration,
)


class PreferencesRepository:
    """Loads and saves ChartPreferences as a single JSON document."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> ChartPreferences:
        """Read preferences, falling back to defaults.

        Returns:
            Stored preferences; defaults when the file is missing or unreadable
        """
        if not self.path.exists():
            logger.debug(f"No preferences at {self.path}, using defaults")
            return ChartPreferences()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("preferences document is not an object")
        except (OSError, ValueError) as e:
            logger.error(f"Error reading preferences from {self.path}: {e}")
            return ChartPreferences()

        version = data.get("version")
        if version != PREFERENCES_VERSION:
            logger.info(f"Migrating preferences from version {version} to {PREFERENCES_VERSION}")

        try:
            prefs = ChartPreferences.from_dict(data)
        except (TypeError, ValueError, KeyError) as e:
            logger.error(f"Invalid preferences in {self.path}: {e}")
            return ChartPreferences()

        return replace(prefs, symbol=consistent_symbol(prefs.symbol, prefs.data_source))

    def save(self, prefs: ChartPreferences) -> None:
        """Write preferences to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(prefs.to_dict(), indent=2), encoding="utf-8")
        logger.debug(f"Saved preferences to {self.path}")


def apply_template(prefs: ChartPreferences, configuration: TemplateConfiguration) -> ChartPreferences:
    """Return preferences with a template's settings applied.

    Template defaults for data source, symbol and timeframe are applied only
    when the template sets them.
    """
    data_source = configuration.default_data_source or prefs.data_source
    symbol = configuration.default_symbol or prefs.symbol

    return replace(
        prefs,
        moving_averages=[replace(ma) for ma in configuration.moving_averages],
        theme=configuration.theme,
        chart_pane_background_color=configuration.chart_pane_background_color,
        volume_pane_height=configuration.volume_pane_height,
        w_signal_color=configuration.w_signal_color,
        w_signal_opacity=configuration.w_signal_opacity,
        show_w_signals=configuration.show_w_signals,
        show_ai_drawings=configuration.show_ai_drawings,
        favorite_timeframes=list(configuration.favorite_timeframes),
        data_source=data_source,
        symbol=consistent_symbol(symbol, data_source),
        timeframe=configuration.default_timeframe or prefs.timeframe,
    )


def configuration_from(prefs: ChartPreferences) -> TemplateConfiguration:
    """Capture the current preferences as a template configuration."""
    return TemplateConfiguration(
        moving_averages=[replace(ma) for ma in prefs.moving_averages],
        theme=prefs.theme,
        chart_pane_background_color=prefs.chart_pane_background_color,
        volume_pane_height=prefs.volume_pane_height,
        w_signal_color=prefs.w_signal_color,
        w_signal_opacity=prefs.w_signal_opacity,
        show_w_signals=prefs.show_w_signals,
        show_ai_drawings=prefs.show_ai_drawings,
        favorite_timeframes=list(prefs.favorite_timeframes),
        default_data_source=prefs.data_source,
        default_symbol=prefs.symbol,
        default_timeframe=prefs.timeframe,
    )
