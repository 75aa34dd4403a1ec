"""Tests for analysis point color classification."""

import pytest

from tradeguard.analytics.signal_colors import (
    IMPORTANT_COLOR,
    NEUTRAL_COLOR,
    ColorRule,
    SignalColorClassifier,
    classify,
    hex_to_rgba,
    hex_with_alpha,
    is_color_light,
)


def _luminance(hex_color: str) -> float:
    r, g, b = (int(hex_color[i : i + 2], 16) for i in (1, 3, 5))
    return 0.299 * r + 0.587 * g + 0.114 * b


class TestClassify:
    """Rule order and timeframe shading."""

    def test_high_importance_overrides_everything(self):
        assert classify("bos_alcista", "1h", "alta", "BOS") == "rgba(255, 215, 0, 0.65)"

    def test_importance_match_is_case_sensitive(self):
        assert classify("zona", "1h", "Alta") == hex_to_rgba(NEUTRAL_COLOR)
        assert classify("zona", "1h", "alta") == hex_to_rgba(IMPORTANT_COLOR)

    def test_first_matching_rule_wins(self):
        """'FVG BSL zone' hits the FVG rule before buy-side liquidity."""
        color = classify("zone", "1h", "media", "FVG BSL zone")

        assert color == hex_to_rgba("#2563EB")

    def test_structure_is_gray(self):
        assert classify("choch_bajista", "4h") == hex_to_rgba(NEUTRAL_COLOR)

    @pytest.mark.parametrize(
        "timeframe,expected",
        [
            ("5m", "#1E3A8A"),
            ("30m", "#1E40AF"),
            ("4H", "#2563EB"),
            ("1d", "#3B82F6"),
            ("3d", "#1E40AF"),
            ("", "#1E40AF"),
        ],
    )
    def test_fvg_shade_per_timeframe(self, timeframe, expected):
        assert classify("fvg_alcista", timeframe) == hex_to_rgba(expected)

    def test_liquidity_ladders(self):
        assert classify("liquidez_compradora", "1m") == hex_to_rgba("#047857")
        assert classify("sell_side", "1w") == hex_to_rgba("#EF4444")

    @pytest.mark.parametrize("category", ["bsl", "ssl"])
    def test_liquidity_shades_lighten_with_timeframe(self, category):
        """One shade per bucket, getting lighter from 5m up to 1d."""
        classifier = SignalColorClassifier()

        shades = [classifier.color_hex(category, timeframe) for timeframe in ("5m", "15m", "1h", "1d")]

        assert len(set(shades)) == 4
        brightness = [_luminance(shade) for shade in shades]
        assert brightness == sorted(brightness)
        assert classifier.color_hex(category, "1m") == shades[0]
        assert classifier.color_hex(category, "1w") == shades[-1]

    def test_equilibrium_substring(self):
        """'eq' also matches labels such as 'EQH'."""
        assert classify("", "", "", "EQ 50%") == hex_to_rgba("#7C3AED")
        assert classify("liquidez_compradora", "1d", "", "EQH Diario") == hex_to_rgba("#7C3AED")

    def test_supply_and_demand_fallbacks(self):
        assert classify("poi_oferta") == hex_to_rgba("#DC2626")
        assert classify("poi_demanda") == hex_to_rgba("#16A34A")

    def test_unknown_kind_is_neutral(self):
        assert classify("something_else", "1h", "baja", "misc") == hex_to_rgba(NEUTRAL_COLOR)

    def test_opacity(self):
        assert classify("bos", opacity=1) == "rgba(107, 114, 128, 1)"
        assert classify("bos", opacity=0.3) == "rgba(107, 114, 128, 0.3)"


class TestClassifier:
    """Custom rule sets."""

    def test_custom_rules(self):
        classifier = SignalColorClassifier(
            rules=(ColorRule("custom", ("pivot",), color="#000000"),),
            important_color="#111111",
        )

        assert classifier.color_hex("pivot_high") == "#000000"
        assert classifier.color_hex("pivot_high", importance="alta") == "#111111"
        assert classifier.color_hex("fvg") == NEUTRAL_COLOR

    def test_match_returns_rule(self):
        rule = SignalColorClassifier().match("bos_alcista", "")

        assert rule is not None
        assert rule.name == "structure"

    def test_important_color_constant(self):
        assert SignalColorClassifier().color_hex(importance="alta") == IMPORTANT_COLOR


class TestColorHelpers:
    """Hex and luminance helpers."""

    def test_hex_to_rgba(self):
        assert hex_to_rgba("#243EA8", 0.5) == "rgba(36, 62, 168, 0.5)"

    def test_hex_with_alpha_percent(self):
        assert hex_with_alpha("#243EA8", 70) == "#243EA8b3"
        assert hex_with_alpha("#243EA8", 100) == "#243EA8ff"
        assert hex_with_alpha("#243EA8", 0) == "#243EA800"

    def test_hex_with_alpha_clamps(self):
        assert hex_with_alpha("#243EA8", 250) == "#243EA8ff"
        assert hex_with_alpha("#243EA8", -5) == "#243EA800"

    @pytest.mark.parametrize(
        "color,light",
        [
            ("#FFFFFF", True),
            ("#18191B", False),
            ("#fff", True),
            ("000", False),
            ("#12345", True),
            ("#zzzzzz", True),
        ],
    )
    def test_is_color_light(self, color, light):
        assert is_color_light(color) is light
