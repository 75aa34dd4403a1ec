"""Analytics layer: Fibonacci levels, signal colors and moving averages."""

from tradeguard.analytics.fibonacci import (
    FibonacciImpulse,
    FibonacciLevel,
    extensions,
    impulse_levels,
    retracements,
)
from tradeguard.analytics.indicators.moving_averages import MovingAverageConfig, MovingAverages
from tradeguard.analytics.signal_colors import SignalColorClassifier, classify

__all__ = [
    "FibonacciImpulse",
    "FibonacciLevel",
    "extensions",
    "impulse_levels",
    "retracements",
    "MovingAverageConfig",
    "MovingAverages",
    "SignalColorClassifier",
    "classify",
]
