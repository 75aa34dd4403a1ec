"""Fibonacci retracement and extension levels.

Levels are computed from the anchor prices of an impulse (A -> B) and,
for extensions, the end of its retracement (C). The calculators are total:
they never validate their inputs, so degenerate or non-finite anchors
produce degenerate or non-finite prices that callers filter out with
``finite_levels``.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

DEFAULT_RETRACEMENT_RATIOS: Tuple[float, ...] = (0.382, 0.5, 0.618, 0.786)
DEFAULT_EXTENSION_RATIOS: Tuple[float, ...] = (1.272, 1.618, 2.618)
DEFAULT_ALTERNATIVE_EXTENSION_RATIOS: Tuple[float, ...] = (-0.272, -0.618, -1.272)

# Ratios listed by the analysis panel
DISPLAY_RETRACEMENT_RATIOS: Tuple[float, ...] = (0.236, 0.382, 0.5, 0.618, 0.786)
DISPLAY_EXTENSION_RATIOS: Tuple[float, ...] = (1.272, 1.414, 1.618, 2.618)


@dataclass(frozen=True)
class FibonacciLevel:
    """A single price level derived from an impulse."""

    ratio: float
    price: float
    label: str


@dataclass(frozen=True)
class FibonacciImpulse:
    """Anchor prices of an impulse and the timeframe it was read on."""

    start: float
    end: float
    retracement_end: Optional[float] = None
    timeframe: str = ""
    description: str = ""

    @property
    def is_upward(self) -> bool:
        return self.end > self.start


def _percent_label(kind: str, ratio: float) -> str:
    return f"{kind} {ratio * 100:.1f}%"


def retracements(
    point_a: float,
    point_b: float,
    ratios: Sequence[float] = DEFAULT_RETRACEMENT_RATIOS,
) -> List[FibonacciLevel]:
    """Calculate retracement levels of the impulse A -> B.

    Args:
        point_a: Starting price of the impulse
        point_b: Ending price of the impulse
        ratios: Fibonacci ratios to project back from B

    Returns:
        One level per ratio, in the order the ratios were given
    """
    price_range = point_b - point_a
    return [
        FibonacciLevel(
            ratio=ratio,
            price=point_b - price_range * ratio,
            label=_percent_label("Retracement", ratio),
        )
        for ratio in ratios
    ]


def extensions(
    point_a: float,
    point_b: float,
    point_c: float,
    ratios: Sequence[float] = DEFAULT_EXTENSION_RATIOS,
) -> List[FibonacciLevel]:
    """Calculate extension levels projected from the retracement end C.

    The projection is a multiple of the impulse length in the impulse's
    direction. C is not checked against A and B.

    Args:
        point_a: Starting price of the impulse
        point_b: Ending price of the impulse
        point_c: End of the retracement from B
        ratios: Extension ratios

    Returns:
        One level per ratio, in the order the ratios were given
    """
    impulse_range = point_b - point_a
    return [
        FibonacciLevel(
            ratio=ratio,
            price=point_c + impulse_range * ratio,
            label=_percent_label("Extension", ratio),
        )
        for ratio in ratios
    ]


def alternative_extensions(
    point_a: float,
    point_b: float,
    point_c: Optional[float] = None,
    ratios: Sequence[float] = DEFAULT_ALTERNATIVE_EXTENSION_RATIOS,
) -> List[FibonacciLevel]:
    """Calculate AB=CD style extensions measured from B.

    ``point_c`` is accepted for signature parity with ``extensions`` and
    is not used.
    """
    impulse_range = point_b - point_a
    return [
        FibonacciLevel(
            ratio=ratio,
            price=point_b + impulse_range * ratio,
            label=_percent_label("Extension", ratio),
        )
        for ratio in ratios
    ]


def sort_retracements(
    levels: Iterable[FibonacciLevel], point_a: float, point_b: float
) -> List[FibonacciLevel]:
    """Order retracements from closest to B to furthest from B."""
    upward = point_b > point_a
    return sorted(levels, key=lambda level: level.price, reverse=upward)


def sort_extensions(levels: Iterable[FibonacciLevel]) -> List[FibonacciLevel]:
    """Order extensions by ascending ratio."""
    return sorted(levels, key=lambda level: level.ratio)


def finite_levels(levels: Iterable[FibonacciLevel]) -> List[FibonacciLevel]:
    """Drop levels whose price is missing or not finite."""
    return [
        level
        for level in levels
        if level.price is not None and math.isfinite(level.price)
    ]


def impulse_levels(
    impulse: FibonacciImpulse,
    retracement_ratios: Sequence[float] = DISPLAY_RETRACEMENT_RATIOS,
    extension_ratios: Sequence[float] = DISPLAY_EXTENSION_RATIOS,
) -> Tuple[List[FibonacciLevel], List[FibonacciLevel]]:
    """Build the display-ordered retracement and extension lists of an impulse.

    Extensions are only produced when the impulse carries a retracement end.
    """
    retracement_levels = sort_retracements(
        retracements(impulse.start, impulse.end, retracement_ratios),
        impulse.start,
        impulse.end,
    )

    extension_levels: List[FibonacciLevel] = []
    if impulse.retracement_end is not None:
        extension_levels = sort_extensions(
            extensions(
                impulse.start,
                impulse.end,
                impulse.retracement_end,
                extension_ratios,
            )
        )

    return retracement_levels, extension_levels
