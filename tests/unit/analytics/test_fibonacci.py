"""Tests for Fibonacci level calculations."""

import math

import pytest

from tradeguard.analytics.fibonacci import (
    DEFAULT_RETRACEMENT_RATIOS,
    FibonacciImpulse,
    FibonacciLevel,
    alternative_extensions,
    extensions,
    finite_levels,
    impulse_levels,
    retracements,
    sort_extensions,
    sort_retracements,
)


def test_retracement_midpoint():
    """The 50% retracement of 100 -> 200 is exactly 150."""
    levels = retracements(100, 200)

    midpoint = next(level for level in levels if level.ratio == 0.5)
    assert midpoint.price == 150
    assert midpoint.label == "Retracement 50.0%"


def test_retracements_keep_ratio_order():
    """One level per default ratio, in the given order."""
    levels = retracements(100, 200)

    assert [level.ratio for level in levels] == list(DEFAULT_RETRACEMENT_RATIOS)
    assert levels[0].price == pytest.approx(161.8)
    assert levels[-1].price == pytest.approx(121.4)


def test_retracements_downward_impulse():
    """A falling impulse retraces upward from B."""
    levels = retracements(200, 100, [0.382])

    assert levels[0].price == pytest.approx(138.2)
    assert levels[0].label == "Retracement 38.2%"


def test_extension_from_retracement_end():
    """Extensions project the impulse length from C."""
    levels = extensions(100, 200, 150, [1.618])

    assert len(levels) == 1
    assert levels[0].price == pytest.approx(311.8)
    assert levels[0].label == "Extension 161.8%"


def test_extensions_default_ratios():
    levels = extensions(100, 200, 150)

    assert [level.ratio for level in levels] == [1.272, 1.618, 2.618]
    assert levels[-1].price == pytest.approx(411.8)


def test_extensions_are_not_bounds_checked():
    """C outside the A-B range still produces levels."""
    levels = extensions(100, 200, 500, [1.0])

    assert levels[0].price == pytest.approx(600)


def test_alternative_extensions_measure_from_b():
    levels = alternative_extensions(100, 200)

    assert levels[0].price == pytest.approx(200 - 27.2)
    assert levels[0].label == "Extension -27.2%"


def test_degenerate_impulse():
    """A == B collapses every level onto B."""
    levels = retracements(100, 100)

    assert all(level.price == 100 for level in levels)


def test_finite_levels_filters_nan_and_inf():
    levels = [
        FibonacciLevel(0.5, 150.0, "ok"),
        FibonacciLevel(0.618, math.nan, "nan"),
        FibonacciLevel(0.786, math.inf, "inf"),
    ]

    assert [level.label for level in finite_levels(levels)] == ["ok"]


def test_non_finite_anchor_propagates():
    """The calculators are total: non-finite input gives non-finite output."""
    levels = retracements(math.nan, 200)

    assert finite_levels(levels) == []


def test_sort_retracements_closest_to_b_first():
    levels = retracements(100, 200, [0.786, 0.236, 0.5])

    ordered = sort_retracements(levels, 100, 200)
    assert [level.ratio for level in ordered] == [0.236, 0.5, 0.786]

    down = sort_retracements(retracements(200, 100, [0.786, 0.236]), 200, 100)
    assert [level.ratio for level in down] == [0.236, 0.786]


def test_sort_extensions_by_ratio():
    levels = extensions(100, 200, 150, [2.618, 1.272, 1.618])

    assert [level.ratio for level in sort_extensions(levels)] == [1.272, 1.618, 2.618]


class TestImpulseLevels:
    """Tests for display-ordered impulse levels."""

    def test_with_retracement_end(self):
        impulse = FibonacciImpulse(start=100, end=200, retracement_end=150, timeframe="4H")

        retracement_levels, extension_levels = impulse_levels(impulse)

        assert len(retracement_levels) == 5
        assert retracement_levels[0].ratio == 0.236
        assert [level.ratio for level in extension_levels] == [1.272, 1.414, 1.618, 2.618]

    def test_without_retracement_end(self):
        impulse = FibonacciImpulse(start=180, end=200)

        retracement_levels, extension_levels = impulse_levels(impulse)

        assert retracement_levels
        assert extension_levels == []

    def test_direction(self):
        assert FibonacciImpulse(start=100, end=200).is_upward
        assert not FibonacciImpulse(start=200, end=100).is_upward


IMPULSES = [(100.0, 200.0), (200.0, 100.0), (1.5, 3.25), (2500.0, 2380.5), (0.0, 0.125)]


@pytest.mark.parametrize("point_a,point_b", IMPULSES)
@pytest.mark.parametrize("ratio", [0.236, 0.382, 0.5, 0.618, 0.786, 1.414])
def test_retracement_formula_exact(point_a, point_b, ratio):
    """Same result as B - (B - A) * r for rising and falling impulses."""
    assert retracements(point_a, point_b, [ratio])[0].price == point_b - (point_b - point_a) * ratio


@pytest.mark.parametrize("point_a,point_b", IMPULSES)
def test_retracement_boundary_ratios(point_a, point_b):
    assert retracements(point_a, point_b, [0])[0].price == point_b
    assert retracements(point_a, point_b, [1])[0].price == point_a


@pytest.mark.parametrize("point_a,point_b", IMPULSES + [(-3.0, 1e6)])
@pytest.mark.parametrize("point_c", [150.0, -7.25, 0.0])
def test_zero_extension_is_point_c(point_a, point_b, point_c):
    assert extensions(point_a, point_b, point_c, [0])[0].price == point_c


@pytest.mark.parametrize("point_a,point_b", IMPULSES)
@pytest.mark.parametrize("ratio", [1.272, 1.618, 2.618])
def test_extension_formula_exact(point_a, point_b, ratio):
    assert extensions(point_a, point_b, 150.0, [ratio])[0].price == 150.0 + (point_b - point_a) * ratio
