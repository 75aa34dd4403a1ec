"""Plotly figure for candles, volume, moving averages and overlays."""

from typing import Optional

import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from tradeguard.analysis.overlays import Overlays
from tradeguard.analytics.indicators.moving_averages import MovingAverages
from tradeguard.analytics.signal_colors import is_color_light
from tradeguard.preferences.models import ChartPreferences

UP_COLOR = "#22C55E"
DOWN_COLOR = "#EF4444"
UP_VOLUME_COLOR = "rgba(34, 197, 94, 0.5)"
DOWN_VOLUME_COLOR = "rgba(239, 68, 68, 0.5)"

GRID_COLORS = {"light": "#e5e7eb", "dark": "#1e293b"}

LINE_DASH = {"solid": "solid", "dashed": "dash", "dotted": "dot"}

MARKER_SYMBOLS = {
    "arrowUp": "triangle-up",
    "arrowDown": "triangle-down",
    "circle": "circle",
    "square": "square",
}

DEFAULT_VOLUME_FRACTION = 0.2


def text_color_for(background: str) -> str:
    """Black text on light backgrounds, white on dark ones."""
    return "#000000" if is_color_light(background) else "#FFFFFF"


def volume_fraction(volume_pane_height: int) -> float:
    """Share of the figure height used by the volume pane."""
    if volume_pane_height and 0 < volume_pane_height < 100:
        return volume_pane_height / 100
    return DEFAULT_VOLUME_FRACTION


def _marker_prices(candles: pd.DataFrame, overlays: Overlays) -> pd.DataFrame:
    """Anchor each marker to its bar: high above, low below, close inside."""
    bar_times = (candles["timestamp"] - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(seconds=1)
    bars = candles.assign(time=bar_times.values).set_index("time")

    rows = []
    for marker in overlays.markers:
        if marker.time not in bars.index:
            continue
        bar = bars.loc[marker.time]
        if isinstance(bar, pd.DataFrame):
            bar = bar.iloc[-1]
        if marker.position == "aboveBar":
            price = bar["high"]
        elif marker.position == "belowBar":
            price = bar["low"]
        else:
            price = bar["close"]
        rows.append(
            {
                "timestamp": bar["timestamp"],
                "price": price,
                "symbol": MARKER_SYMBOLS.get(marker.shape, "circle"),
                "color": marker.color,
                "text": marker.text,
                "textposition": "top center" if marker.position == "aboveBar" else "bottom center",
            }
        )
    return pd.DataFrame(rows)


def build_chart_figure(
    candles: pd.DataFrame,
    preferences: ChartPreferences,
    overlays: Optional[Overlays] = None,
    title: Optional[str] = None,
) -> go.Figure:
    """Build the dashboard chart.

    Args:
        candles: Candles sorted by timestamp
        preferences: Theme, colors and moving averages to draw
        overlays: Analysis lines and markers
        title: Figure title

    Returns:
        A two-row figure: price pane (candles, averages, overlays) and volume
    """
    fraction = volume_fraction(preferences.volume_pane_height)
    fig = make_subplots(
        rows=2,
        cols=1,
        shared_xaxes=True,
        vertical_spacing=0.02,
        row_heights=[1 - fraction, fraction],
    )

    fig.add_trace(
        go.Candlestick(
            x=candles["timestamp"],
            open=candles["open"],
            high=candles["high"],
            low=candles["low"],
            close=candles["close"],
            increasing_line_color=UP_COLOR,
            decreasing_line_color=DOWN_COLOR,
            name="OHLC",
        ),
        row=1,
        col=1,
    )

    volume_colors = [
        UP_VOLUME_COLOR if close >= open_ else DOWN_VOLUME_COLOR
        for open_, close in zip(candles["open"], candles["close"])
    ]
    fig.add_trace(
        go.Bar(
            x=candles["timestamp"],
            y=candles["volume"],
            marker_color=volume_colors,
            name="Volume",
            showlegend=False,
        ),
        row=2,
        col=1,
    )

    for config in preferences.moving_averages:
        if not config.visible:
            continue
        values = MovingAverages.calculate(candles["close"], config)
        if values.empty:
            continue
        fig.add_trace(
            go.Scatter(
                x=candles.loc[values.index, "timestamp"],
                y=values,
                mode="lines",
                name=f"{config.type} {config.period}",
                line=dict(color=config.color, width=1),
            ),
            row=1,
            col=1,
        )

    if overlays is not None:
        for line in overlays.lines:
            fig.add_hline(
                y=line.price,
                line=dict(color=line.color, width=line.width, dash=LINE_DASH.get(line.style, "dash")),
                annotation_text=line.title,
                annotation_position="right",
                annotation_font_color=line.color,
                row=1,
                col=1,
            )

        markers = _marker_prices(candles, overlays) if not candles.empty else pd.DataFrame()
        if not markers.empty:
            fig.add_trace(
                go.Scatter(
                    x=markers["timestamp"],
                    y=markers["price"],
                    mode="markers+text",
                    text=markers["text"],
                    textposition=markers["textposition"],
                    marker=dict(symbol=markers["symbol"], color=markers["color"], size=12),
                    name="Signals",
                    showlegend=False,
                ),
                row=1,
                col=1,
            )

    background = preferences.chart_pane_background_color
    text_color = text_color_for(background)
    grid_color = GRID_COLORS["dark" if preferences.theme == "dark" else "light"]

    fig.update_layout(
        title=title,
        height=700,
        template="plotly_dark" if preferences.theme == "dark" else "plotly_white",
        paper_bgcolor=background,
        plot_bgcolor=background,
        font=dict(color=text_color),
        hovermode="x unified",
        xaxis_rangeslider_visible=False,
        margin=dict(l=10, r=120, t=40, b=10),
    )
    fig.update_xaxes(gridcolor=grid_color)
    fig.update_yaxes(gridcolor=grid_color)
    return fig
