"""Chart overlays derived from an analysis payload.

Produces plain records (horizontal price lines and bar markers) that any
renderer can draw. Colors come from the signal color classifier.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from loguru import logger

from tradeguard.analytics.fibonacci import (
    DISPLAY_RETRACEMENT_RATIOS,
    FibonacciLevel,
    finite_levels,
    retracements,
)
from tradeguard.analytics.signal_colors import SignalColorClassifier, hex_with_alpha
from tradeguard.constants import (
    DEFAULT_SIGNALS_OPACITY,
    DEFAULT_W_SIGNAL_COLOR,
    DEFAULT_W_SIGNAL_OPACITY,
)
from tradeguard.llm.schema import AnalysisPoint, AnalysisResult, FibonacciImpulseAnalysis

SOLID = "solid"
DASHED = "dashed"
DOTTED = "dotted"

FIBONACCI_COLORS = {
    "light": {
        "retracement": "rgba(59, 130, 246, 0.7)",
        "extension": "rgba(249, 115, 22, 0.7)",
    },
    "dark": {
        "retracement": "rgba(96, 165, 250, 0.7)",
        "extension": "rgba(251, 146, 60, 0.7)",
    },
}


@dataclass
class PriceLine:
    """Horizontal line across the price pane."""

    price: float
    color: str
    title: str
    style: str = DASHED
    width: int = 1


@dataclass
class Marker:
    """Shape attached to a bar."""

    time: int  # bar open time in seconds
    position: str  # aboveBar | belowBar | inBar
    shape: str  # arrowUp | arrowDown | circle | square
    color: str
    text: str = ""


@dataclass
class OverlayOptions:
    """Display settings that affect the overlays."""

    show_ai_drawings: bool = True
    show_w_signals: bool = True
    show_ltf_fibonacci: bool = True
    w_signal_color: str = DEFAULT_W_SIGNAL_COLOR
    w_signal_opacity: float = DEFAULT_W_SIGNAL_OPACITY  # percent
    signals_opacity: float = DEFAULT_SIGNALS_OPACITY  # percent
    theme: str = "dark"


@dataclass
class Overlays:
    lines: List[PriceLine] = field(default_factory=list)
    markers: List[Marker] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.lines) + len(self.markers)


class OverlayBuilder:
    """Collects lines and markers for one analysis result."""

    def __init__(
        self,
        options: OverlayOptions,
        classifier: Optional[SignalColorClassifier] = None,
    ):
        self.options = options
        self.classifier = classifier or SignalColorClassifier()
        self.overlays = Overlays()

    @property
    def opacity(self) -> float:
        return self.options.signals_opacity / 100

    def color_of(self, point: AnalysisPoint, kind: Optional[str] = None) -> str:
        return self.classifier.classify(
            kind if kind is not None else point.tipo,
            point.temporalidad or "",
            point.importancia or "",
            point.label or "",
            self.opacity,
        )

    def line(self, price: Optional[float], color: str, title: str, style: str = DASHED, width: int = 1) -> None:
        if price is None or not math.isfinite(price):
            return
        self.overlays.lines.append(PriceLine(price=price, color=color, title=title, style=style, width=width))

    def zone(self, zone: List[float], color: str, title: Optional[str] = None) -> None:
        if len(zone) < 2:
            logger.debug(f"Ignoring malformed zone: {zone}")
            return
        self.line(zone[0], color, f"{title} (Bottom)" if title else "Zone Bottom")
        self.line(zone[1], color, f"{title} (Top)" if title else "Zone Top")

    def marker(self, point: AnalysisPoint, color: str, shape: str, position: str) -> Optional[Marker]:
        if not point.marker_time:
            return None
        text = point.marker_text or (point.label or "")[:3]
        return Marker(time=point.marker_time, position=position, shape=shape, color=color, text=text)

    def add_marker(self, point: AnalysisPoint, color: str, shape: str, position: str) -> None:
        marker = self.marker(point, color, shape, position)
        if marker:
            self.overlays.markers.append(marker)

    def key_points(self, points: Iterable[AnalysisPoint]) -> None:
        for point in points:
            color = self.color_of(point)
            if point.nivel is not None:
                self.line(point.nivel, color, point.label)
            if point.zona:
                self.zone(point.zona, color, point.label)

    def liquidity(self, result: AnalysisResult) -> None:
        for point in result.liquidez_importante.buy_side:
            color = self.color_of(point, "buy_side")
            self.line(point.nivel, color, f"BSL: {point.label}", style=SOLID, width=2)
            self.add_marker(point, color, "arrowUp", "belowBar")

        for point in result.liquidez_importante.sell_side:
            color = self.color_of(point, "sell_side")
            self.line(point.nivel, color, f"SSL: {point.label}", style=SOLID, width=2)
            self.add_marker(point, color, "arrowDown", "aboveBar")

    def supply_demand(self, result: AnalysisResult) -> None:
        zones = result.zonas_criticas_oferta_demanda

        for point in zones.oferta_clave:
            color = self.color_of(point, point.tipo or "oferta")
            if point.zona:
                self.zone(point.zona, color, f"OB Supply: {point.label}")
            elif point.nivel is not None:
                self.line(point.nivel, color, f"Supply: {point.label}")
            self.add_marker(point, color, "circle", "aboveBar")

        for point in zones.demanda_clave:
            color = self.color_of(point, point.tipo or "demanda")
            if point.zona:
                self.zone(point.zona, color, f"OB Demand: {point.label}")
            elif point.nivel is not None:
                self.line(point.nivel, color, f"Demand: {point.label}")
            self.add_marker(point, color, "circle", "belowBar")

        for point in zones.fvg_importantes:
            color = self.color_of(point, "fvg")
            if point.zona:
                self.zone(point.zona, color, f"FVG: {point.label}")
            self.add_marker(point, color, "square", "inBar")

    def w_signals(self, result: AnalysisResult) -> None:
        color = hex_with_alpha(self.options.w_signal_color, self.options.w_signal_opacity)
        for point in all_points(result):
            kind = point.tipo or ""
            if "w_signal" not in kind and "AI_W_SIGNAL" not in kind:
                continue
            bullish = "bullish" in kind or "alcista" in kind
            marker = self.marker(
                point,
                color,
                "arrowUp" if bullish else "arrowDown",
                "belowBar" if bullish else "aboveBar",
            )
            if marker:
                marker.text = "W"
                self.overlays.markers.append(marker)

    def fibonacci(self, impulse: FibonacciImpulseAnalysis, color: str, suffix: str) -> None:
        levels: List[FibonacciLevel] = finite_levels(
            retracements(
                impulse.precio_inicio_impulso,
                impulse.precio_fin_impulso,
                DISPLAY_RETRACEMENT_RATIOS,
            )
        )
        for level in levels:
            self.line(level.price, color, f"{level.label} {suffix}", style=DOTTED)

    def build(self, result: AnalysisResult) -> Overlays:
        self.key_points(result.puntos_clave_grafico)
        self.liquidity(result)
        self.supply_demand(result)
        if self.options.show_w_signals:
            self.w_signals(result)

        fib = result.analisis_fibonacci
        if fib is not None:
            colors = FIBONACCI_COLORS["dark" if self.options.theme == "dark" else "light"]
            if fib.htf is not None:
                self.fibonacci(fib.htf, colors["retracement"], "HTF")
            if fib.ltf is not None and self.options.show_ltf_fibonacci:
                self.fibonacci(fib.ltf, colors["extension"], "LTF")

        return self.overlays


def all_points(result: AnalysisResult) -> List[AnalysisPoint]:
    """Every analysis point of the payload, in drawing order."""
    zones = result.zonas_criticas_oferta_demanda
    return [
        *result.puntos_clave_grafico,
        *result.liquidez_importante.buy_side,
        *result.liquidez_importante.sell_side,
        *zones.oferta_clave,
        *zones.demanda_clave,
        *zones.fvg_importantes,
    ]


def build_overlays(
    result: Optional[AnalysisResult],
    options: Optional[OverlayOptions] = None,
) -> Overlays:
    """Convert an analysis into chart lines and markers.

    Args:
        result: Analysis payload, or None when no analysis is loaded
        options: Display settings (defaults used when omitted)

    Returns:
        The lines and markers to draw; empty when drawings are disabled
    """
    options = options or OverlayOptions()
    if result is None or not options.show_ai_drawings:
        return Overlays()

    overlays = OverlayBuilder(options).build(result)
    logger.debug(f"Built {len(overlays.lines)} lines and {len(overlays.markers)} markers")
    return overlays
