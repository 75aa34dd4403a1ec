"""Tests for model response parsing."""

import json

import pytest

from tradeguard.llm.parsing import parse_analysis_text, repair_json, strip_code_fence
from tradeguard.llm.schema import AnalysisResult, fallback_analysis, is_fallback


class TestStripCodeFence:
    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


class TestRepairJson:
    def test_closes_truncated_document(self):
        repaired = repair_json('{"a": [1, 2,')

        assert json.loads(repaired) == {"a": [1, 2]}

    def test_leaves_valid_json(self):
        assert repair_json('{"a": 1}') == '{"a": 1}'

    def test_closes_nested_objects(self):
        repaired = repair_json('{"a": {"b": 1}, "c": {"d": 2')

        assert json.loads(repaired) == {"a": {"b": 1}, "c": {"d": 2}}


class TestParseAnalysisText:
    """Tests for parse_analysis_text."""

    def test_valid_payload(self, analysis_payload):
        result = parse_analysis_text(json.dumps(analysis_payload), "ETH/USDT", "1H")

        assert not is_fallback(result)
        assert result.analisis_general.sesgo_direccional_general == "alcista"
        assert result.puntos_clave_grafico[0].zona == [2400.0, 2430.0]
        assert result.analisis_fibonacci.htf.precio_fin_retroceso == 150.0

    def test_fenced_payload(self, analysis_payload):
        text = f"```json\n{json.dumps(analysis_payload, indent=2)}\n```"

        result = parse_analysis_text(text, "ETH/USDT", "1H")

        assert not is_fallback(result)

    def test_truncated_payload_repaired(self):
        text = '{"analisis_general": {"simbolo": "ETH/USDT"}, "escenarios_probables": [{"nombre_escenario": "A"},'

        result = parse_analysis_text(text, "ETH/USDT", "1H")

        assert result.escenarios_probables[0].nombre_escenario == "A"

    def test_empty_scenarios_are_accepted(self):
        text = json.dumps({"analisis_general": {"simbolo": "ETH/USDT"}, "escenarios_probables": []})

        result = parse_analysis_text(text, "ETH/USDT", "1H")

        assert not is_fallback(result)
        assert result.escenarios_probables == []

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "I cannot analyze this chart.",
            '{"analisis_general": {"simbolo": "ETH/USDT"}}',
            '{"escenarios_probables": []}',
            "[1, 2, 3]",
            '{"analisis_general": "texto", "escenarios_probables": []}',
        ],
    )
    def test_unusable_text_falls_back(self, text):
        result = parse_analysis_text(text, "ETH/USDT", "1H")

        assert is_fallback(result)
        assert result.analisis_general.simbolo == "ETH/USDT"
        assert result.analisis_general.temporalidad_principal_analisis == "1H"


class TestSchema:
    """Tests for the analysis models."""

    def test_unknown_fields_ignored(self, analysis_result):
        assert not hasattr(analysis_result, "campo_desconocido")

    def test_defaults_for_missing_sections(self):
        result = AnalysisResult.model_validate({"analisis_general": {}, "escenarios_probables": []})

        assert result.liquidez_importante.buy_side == []
        assert result.analisis_fibonacci is None
        assert result.conclusion_recomendacion.resumen_ejecutivo == ""

    def test_matches_chart(self, analysis_result):
        assert analysis_result.matches_chart("ETH/USDT", "1h")
        assert not analysis_result.matches_chart("ETH/USDT", "4h")
        assert not analysis_result.matches_chart("BTC/USDT", "1h")

    def test_fibonacci_impulse(self, analysis_result):
        impulse = analysis_result.analisis_fibonacci.htf.to_impulse()

        assert impulse.start == 100.0
        assert impulse.end == 200.0
        assert impulse.retracement_end == 150.0
        assert impulse.timeframe == "4H"

    def test_fallback_contents(self):
        result = fallback_analysis("BTC/USDT", "4H")

        assert result.analisis_general.sesgo_direccional_general == "indefinido"
        assert result.conclusion_recomendacion.proximo_movimiento_esperado == "Indeterminado"
        setup = result.escenarios_probables[0].trade_setup_asociado
        assert setup.tipo == "ninguno"
        assert setup.razon_fundamental == "Error técnico"
        assert is_fallback(result)


class TestMalformedItems:
    """A bad field or item from the model only affects that field or item."""

    @pytest.fixture
    def payload(self):
        return {
            "analisis_general": {"simbolo": "ETH/USDT", "sesgo_direccional_general": "alcista"},
            "liquidez_importante": {
                "buy_side": [
                    {"tipo": "liquidez_compradora", "nivel": 2600.0, "label": "BSL 1"},
                    {"tipo": "liquidez_compradora", "nivel": 2650.0, "label": "BSL 2"},
                ],
            },
            "analisis_fibonacci": {
                "htf": {"precio_inicio_impulso": 100.0, "precio_fin_impulso": 200.0},
                "ltf": {"precio_inicio_impulso": 180.0, "precio_fin_impulso": 200.0},
            },
            "escenarios_probables": [{"nombre_escenario": "Continuación", "probabilidad": "alta"}],
        }

    @pytest.mark.parametrize("field", ["label", "tipo"])
    def test_null_point_field_uses_default(self, payload, field):
        payload["liquidez_importante"]["buy_side"][1][field] = None

        result = parse_analysis_text(json.dumps(payload), "ETH/USDT", "1H")

        assert not is_fallback(result)
        buy_side = result.liquidez_importante.buy_side
        assert len(buy_side) == 2
        assert getattr(buy_side[1], field) == ""
        assert buy_side[0].label == "BSL 1"

    def test_null_strings_in_sections(self, payload):
        payload["analisis_general"]["sesgo_direccional_general"] = None
        payload["escenarios_probables"][0]["descripcion_detallada"] = None
        payload["escenarios_probables"][0]["trade_setup_asociado"] = {"tipo": "largo", "stop_loss": None}

        result = parse_analysis_text(json.dumps(payload), "ETH/USDT", "1H")

        assert not is_fallback(result)
        assert result.analisis_general.sesgo_direccional_general == "indefinido"
        scenario = result.escenarios_probables[0]
        assert scenario.descripcion_detallada == ""
        assert scenario.trade_setup_asociado.tipo == "largo"
        assert scenario.trade_setup_asociado.stop_loss == 0.0

    def test_malformed_point_dropped_alone(self, payload):
        payload["liquidez_importante"]["buy_side"].insert(0, {"tipo": "bsl", "zona": [2500.0, "arriba"]})
        payload["liquidez_importante"]["buy_side"].append(None)

        result = parse_analysis_text(json.dumps(payload), "ETH/USDT", "1H")

        assert not is_fallback(result)
        assert [p.label for p in result.liquidez_importante.buy_side] == ["BSL 1", "BSL 2"]

    def test_impulse_without_prices_dropped_alone(self, payload):
        payload["analisis_fibonacci"]["htf"]["precio_inicio_impulso"] = None

        result = parse_analysis_text(json.dumps(payload), "ETH/USDT", "1H")

        assert not is_fallback(result)
        assert result.analisis_fibonacci.htf is None
        assert result.analisis_fibonacci.ltf.precio_inicio_impulso == 180.0
        assert len(result.liquidez_importante.buy_side) == 2
