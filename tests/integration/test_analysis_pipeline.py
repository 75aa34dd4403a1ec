"""Integration tests from model response to chart and chat."""

import json
from unittest.mock import Mock

import pytest

from tradeguard.analysis.overlays import OverlayOptions, build_overlays
from tradeguard.llm import AnalysisRequest, ChartContext, ChatSession, GeminiAnalyst
from tradeguard.llm.schema import is_fallback
from tradeguard.preferences import (
    PreferencesRepository,
    TemplateManager,
    apply_template,
    configuration_from,
)
from tradeguard.ui.charts import build_chart_figure


@pytest.mark.integration
class TestAnalysisPipeline:
    """Analysis request through to the rendered figure."""

    def test_analysis_to_figure(self, llm_config, mock_genai_client, analysis_payload, sample_ohlcv_data, temp_data_dir):
        fenced = f"```json\n{json.dumps(analysis_payload)}\n```"
        mock_genai_client.models.generate_content.return_value = Mock(text=fenced)

        last = sample_ohlcv_data.iloc[-1]
        request = AnalysisRequest.from_chart("ETHUSDT", "1h", float(last["close"]), float(last["volume"]))
        result = GeminiAnalyst(llm_config, client=mock_genai_client).analyze(request)
        assert not is_fallback(result)

        prefs = PreferencesRepository(temp_data_dir / "preferences.json").load()
        options = OverlayOptions(
            show_ai_drawings=prefs.show_ai_drawings,
            show_w_signals=prefs.show_w_signals,
            show_ltf_fibonacci=prefs.show_ltf_fibonacci,
            w_signal_color=prefs.w_signal_color,
            w_signal_opacity=prefs.w_signal_opacity,
            signals_opacity=prefs.signals_opacity,
            theme=prefs.theme,
        )
        overlays = build_overlays(result, options)
        fig = build_chart_figure(sample_ohlcv_data, prefs, overlays)

        assert len(fig.layout.shapes) == len(overlays.lines) == 21
        assert fig.data[-1].name == "Signals"

    def test_truncated_response_still_draws(self, llm_config, mock_genai_client, analysis_payload, sample_ohlcv_data):
        text = json.dumps(analysis_payload)
        mock_genai_client.models.generate_content.return_value = Mock(text=text[: text.index('"conclusion_recomendacion"')])

        result = GeminiAnalyst(llm_config, client=mock_genai_client).analyze(
            AnalysisRequest.from_chart("ETHUSDT", "1h", 2500.0)
        )

        assert not is_fallback(result)
        assert len(build_overlays(result).lines) == 21

    def test_chat_uses_analysis_for_same_chart(self, llm_config, mock_genai_client, analysis_result):
        chat = Mock()
        chat.send_message_stream.return_value = iter([Mock(text="Compra en demanda.")])
        mock_genai_client.chats.create.return_value = chat
        session = ChatSession(llm_config, "ETH/USDT", "1h", client=mock_genai_client)

        context = ChartContext(symbol="ETH/USDT", timeframe="1h", data_source="binance", analysis=analysis_result)
        reply = session.send("¿Dónde entro?", context)

        assert reply == "Compra en demanda."
        prompt = chat.send_message_stream.call_args[0][0]
        assert "ANÁLISIS TÉCNICO PREVIO DISPONIBLE:" in prompt


@pytest.mark.integration
class TestPreferencesIntegration:
    """Templates captured from and applied to stored preferences."""

    def test_template_round_trip(self, temp_data_dir):
        repository = PreferencesRepository(temp_data_dir / "preferences.json")
        manager = TemplateManager(temp_data_dir / "templates.json")

        prefs = repository.load()
        prefs.theme = "light"
        prefs.volume_pane_height = 35
        repository.save(prefs)

        template_id = manager.save_template("Light", configuration_from(prefs), is_default=True)

        fresh = TemplateManager(temp_data_dir / "templates.json")
        default = fresh.get_default_template()
        assert default.id == template_id

        applied = apply_template(repository.load(), fresh.load_template(template_id))
        assert applied == repository.load()
