"""Display colors for AI analysis points.

Analysis points arrive as loosely structured LLM output, so categories are
recognised by case-insensitive substring matching over ``"{kind} {label}"``
rather than by an enum. Rules are evaluated in order and the first match
wins; several tags often co-occur in one label ("FVG BSL zone"), which makes
the order itself part of the contract.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

IMPORTANT_COLOR = "#FFD700"
NEUTRAL_COLOR = "#6B7280"
DEFAULT_SIGNAL_OPACITY = 0.65

# Timeframe buckets, darkest shade first
TIMEFRAME_LADDER: Tuple[Tuple[str, ...], ...] = (
    ("1m", "5m"),
    ("15m", "30m"),
    ("1h", "4h"),
    ("1d", "1w"),
)


@dataclass(frozen=True)
class ShadeLadder:
    """One hue with a shade per timeframe bucket."""

    shades: Tuple[str, str, str, str]
    default: str

    def shade_for(self, timeframe: Optional[str]) -> str:
        """Pick the shade for a timeframe, falling back to the default."""
        tf = (timeframe or "").lower()
        for bucket, shade in zip(TIMEFRAME_LADDER, self.shades):
            if tf in bucket:
                return shade
        return self.default


BLUE_LADDER = ShadeLadder(("#1E3A8A", "#1E40AF", "#2563EB", "#3B82F6"), "#1E40AF")
GREEN_LADDER = ShadeLadder(("#047857", "#059669", "#10B981", "#22C55E"), "#10B981")
RED_LADDER = ShadeLadder(("#991B1B", "#B91C1C", "#DC2626", "#EF4444"), "#DC2626")


@dataclass(frozen=True)
class ColorRule:
    """Keywords that select a color, fixed or per timeframe."""

    name: str
    keywords: Tuple[str, ...]
    color: Optional[str] = None
    ladder: Optional[ShadeLadder] = None

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)

    def hex_for(self, timeframe: Optional[str]) -> str:
        if self.ladder is not None:
            return self.ladder.shade_for(timeframe)
        return self.color or NEUTRAL_COLOR


SIGNAL_COLOR_RULES: Tuple[ColorRule, ...] = (
    ColorRule("structure", ("bos", "choch"), color=NEUTRAL_COLOR),
    ColorRule("fvg", ("fvg",), ladder=BLUE_LADDER),
    ColorRule("equilibrium", ("eq", "equilibrium"), color="#7C3AED"),
    ColorRule(
        "buy_side_liquidity",
        ("bsl", "buy_side", "buy-side", "liquidez_compradora"),
        ladder=GREEN_LADDER,
    ),
    ColorRule(
        "sell_side_liquidity",
        ("ssl", "sell_side", "sell-side", "liquidez_vendedora"),
        ladder=RED_LADDER,
    ),
    ColorRule("supply", ("supply", "oferta"), color="#DC2626"),
    ColorRule("demand", ("demand", "demanda"), color="#16A34A"),
)


def _format_alpha(opacity: float) -> str:
    return f"{opacity:g}"


def hex_to_rgba(hex_color: str, opacity: float = DEFAULT_SIGNAL_OPACITY) -> str:
    """Convert ``#RRGGBB`` to an ``rgba(r, g, b, a)`` string."""
    color = hex_color.lstrip("#")
    r = int(color[0:2], 16)
    g = int(color[2:4], 16)
    b = int(color[4:6], 16)
    return f"rgba({r}, {g}, {b}, {_format_alpha(opacity)})"


def hex_with_alpha(hex_color: str, opacity_percent: float) -> str:
    """Append an alpha byte (from a 0-100 opacity) to ``#RRGGBB``."""
    percent = min(max(opacity_percent, 0), 100)
    alpha = int(percent * 255 / 100 + 0.5)
    return f"{hex_color}{alpha:02x}"


def is_color_light(hex_color: str) -> bool:
    """Perceived-luminance check used to pick a readable text color.

    Malformed colors count as light.
    """
    color = hex_color[1:] if hex_color.startswith("#") else hex_color
    if len(color) not in (3, 6):
        return True
    try:
        if len(color) == 3:
            r, g, b = (int(c * 2, 16) for c in color)
        else:
            r, g, b = (int(color[i : i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return True
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255 > 0.5


@dataclass
class SignalColorClassifier:
    """Ordered rule list mapping analysis points to colors."""

    rules: Sequence[ColorRule] = field(default_factory=lambda: SIGNAL_COLOR_RULES)
    important_color: str = IMPORTANT_COLOR
    default_color: str = NEUTRAL_COLOR

    def match(self, kind: str = "", label: str = "") -> Optional[ColorRule]:
        """Return the first rule matching the kind and label text."""
        text = f"{kind or ''} {label or ''}".lower()
        for rule in self.rules:
            if rule.matches(text):
                return rule
        return None

    def color_hex(
        self,
        kind: str = "",
        timeframe: str = "",
        importance: str = "",
        label: str = "",
    ) -> str:
        """Resolve the hex color of an analysis point."""
        if importance == "alta":
            return self.important_color
        rule = self.match(kind, label)
        if rule is None:
            return self.default_color
        return rule.hex_for(timeframe)

    def classify(
        self,
        kind: str = "",
        timeframe: str = "",
        importance: str = "",
        label: str = "",
        opacity: float = DEFAULT_SIGNAL_OPACITY,
    ) -> str:
        """Resolve the rgba color of an analysis point."""
        return hex_to_rgba(self.color_hex(kind, timeframe, importance, label), opacity)


_default_classifier = SignalColorClassifier()


def classify(
    kind: str = "",
    timeframe: str = "",
    importance: str = "",
    label: str = "",
    opacity: float = DEFAULT_SIGNAL_OPACITY,
) -> str:
    """Classify with the default rule set."""
    return _default_classifier.classify(kind, timeframe, importance, label, opacity)
