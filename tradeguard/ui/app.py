"""Main Streamlit application.

Run with ``streamlit run tradeguard/ui/app.py``.
"""

import asyncio
from dataclasses import replace
from typing import List, Optional

import pandas as pd
import streamlit as st
from loguru import logger

from tradeguard.analysis.overlays import OverlayOptions, build_overlays
from tradeguard.analytics.fibonacci import FibonacciLevel, impulse_levels
from tradeguard.analytics.indicators.moving_averages import MovingAverageConfig
from tradeguard.config import configure_logging, get_config
from tradeguard.constants import AVAILABLE_SYMBOLS, AVAILABLE_TIMEFRAMES, DATA_SOURCES
from tradeguard.data.connectors import get_connector
from tradeguard.data.symbols import consistent_symbol, display_symbol
from tradeguard.exceptions import ConfigurationError, LLMServiceError, TradeGuardError
from tradeguard.llm import AnalysisRequest, ChartContext, ChatSession, GeminiAnalyst
from tradeguard.llm.schema import AnalysisPoint, AnalysisResult, FibonacciImpulseAnalysis, TradeSetup
from tradeguard.preferences import (
    ChartPreferences,
    PreferencesRepository,
    TemplateManager,
    apply_template,
    configuration_from,
)
from tradeguard.preferences.models import default_background
from tradeguard.ui.charts import build_chart_figure
from tradeguard.ui.formatting import format_percent, format_price, format_volume

st.set_page_config(
    page_title="TradeGuard",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded",
)

config = get_config()
configure_logging(config.logging)
repository = PreferencesRepository(config.storage.preferences_path)
templates = TemplateManager(config.storage.templates_path)

if "preferences" not in st.session_state:
    initial = repository.load()
    default_template = templates.get_default_template()
    if default_template is not None and not repository.path.exists():
        initial = apply_template(initial, default_template.configuration)
        logger.info(f"Applied default template '{default_template.name}'")
    st.session_state.preferences = initial
if "analysis" not in st.session_state:
    st.session_state.analysis = None
if "chat" not in st.session_state:
    st.session_state.chat = None


def save_preferences(prefs: ChartPreferences) -> None:
    st.session_state.preferences = prefs
    repository.save(prefs)
    templates.update_active_template(configuration_from(prefs))


@st.cache_data(ttl=60)
def load_candles(data_source: str, symbol: str, timeframe: str, limit: int) -> pd.DataFrame:
    """Fetch candles from the exchange."""

    async def _fetch() -> pd.DataFrame:
        exchange = config.binance if data_source == "binance" else config.bingx
        connector = get_connector(
            data_source,
            api_key=exchange.api_key,
            api_secret=exchange.api_secret,
            timeout=config.request_timeout,
        )
        async with connector:
            return await connector.fetch_ohlcv(symbol, timeframe, limit=limit)

    return asyncio.run(_fetch())


@st.cache_data(ttl=30)
def load_ticker(data_source: str, symbol: str) -> dict:
    async def _fetch() -> dict:
        connector = get_connector(data_source, timeout=config.request_timeout)
        async with connector:
            return await connector.fetch_ticker(symbol)

    return asyncio.run(_fetch())


# Sidebar configuration
prefs: ChartPreferences = st.session_state.preferences
st.sidebar.header("Chart")

source_keys = list(DATA_SOURCES)
data_source = st.sidebar.selectbox(
    "Data source",
    source_keys,
    index=source_keys.index(prefs.data_source) if prefs.data_source in source_keys else 0,
    format_func=lambda key: DATA_SOURCES[key],
)
symbol_input = st.sidebar.text_input("Symbol", value=consistent_symbol(prefs.symbol, data_source))
st.sidebar.caption("Examples: " + ", ".join(AVAILABLE_SYMBOLS[data_source]))
symbol = consistent_symbol(symbol_input.strip() or prefs.symbol, data_source)

timeframe_options = prefs.favorite_timeframes or AVAILABLE_TIMEFRAMES
if prefs.timeframe not in timeframe_options:
    timeframe_options = [*timeframe_options, prefs.timeframe]
timeframe = st.sidebar.radio(
    "Timeframe",
    timeframe_options,
    index=timeframe_options.index(prefs.timeframe),
    horizontal=True,
)

st.sidebar.header("Display")
theme = st.sidebar.radio("Theme", ["dark", "light"], index=0 if prefs.theme == "dark" else 1, horizontal=True)
background = st.sidebar.color_picker(
    "Chart background",
    prefs.chart_pane_background_color if theme == prefs.theme else default_background(theme),
)
volume_height = st.sidebar.slider("Volume pane height (%)", 0, 50, prefs.volume_pane_height)
favorites = st.sidebar.multiselect("Favorite timeframes", AVAILABLE_TIMEFRAMES, default=prefs.favorite_timeframes)

st.sidebar.header("Signals")
show_ai_drawings = st.sidebar.checkbox("Show AI drawings", value=prefs.show_ai_drawings)
show_w_signals = st.sidebar.checkbox("Show W-signals", value=prefs.show_w_signals)
show_ltf_fibonacci = st.sidebar.checkbox("Show LTF Fibonacci", value=prefs.show_ltf_fibonacci)
w_signal_color = st.sidebar.color_picker("W-signal color", prefs.w_signal_color)
w_signal_opacity = st.sidebar.slider("W-signal opacity (%)", 0, 100, prefs.w_signal_opacity)
signals_opacity = st.sidebar.slider("Signals opacity (%)", 0, 100, prefs.signals_opacity)

with st.sidebar.expander("Moving averages"):
    ma_table = st.data_editor(
        pd.DataFrame([ma.to_dict() for ma in prefs.moving_averages]),
        num_rows="dynamic",
        column_config={
            "type": st.column_config.SelectboxColumn("type", options=["MA", "EMA"]),
            "period": st.column_config.NumberColumn("period", min_value=1, step=1),
        },
        hide_index=True,
    )
    moving_averages: List[MovingAverageConfig] = [
        MovingAverageConfig.from_dict(row)
        for row in ma_table.dropna(subset=["type", "period"]).to_dict("records")
    ]

updated = replace(
    prefs,
    data_source=data_source,
    symbol=symbol,
    timeframe=timeframe,
    theme=theme,
    chart_pane_background_color=background,
    volume_pane_height=volume_height,
    favorite_timeframes=favorites or prefs.favorite_timeframes,
    show_ai_drawings=show_ai_drawings,
    show_w_signals=show_w_signals,
    show_ltf_fibonacci=show_ltf_fibonacci,
    w_signal_color=w_signal_color,
    w_signal_opacity=w_signal_opacity,
    signals_opacity=signals_opacity,
    moving_averages=moving_averages,
)
if updated != prefs:
    save_preferences(updated)
    prefs = updated

# Header
st.title(f"📈 {display_symbol(symbol)} · {timeframe.upper()}")
active = templates.get_active_template()
if active:
    st.caption(f"Template: {active.name}")

try:
    candles = load_candles(data_source, symbol, timeframe, config.candle_limit)
except Exception as e:
    logger.error(f"Error loading candles: {e}")
    st.error(f"Error loading data: {e}")
    st.stop()

if candles.empty:
    st.warning(f"No data available for {symbol} on {DATA_SOURCES[data_source]}.")
    st.stop()

last = candles.iloc[-1]
col1, col2, col3 = st.columns(3)
with col1:
    st.metric("Last Price", f"${format_price(last['close'])}")
with col2:
    try:
        ticker = load_ticker(data_source, symbol)
        st.metric("24h Change", format_percent(ticker.get("change_percent")))
    except Exception as e:
        logger.warning(f"Ticker unavailable: {e}")
        st.metric("24h Change", "N/A")
with col3:
    st.metric("Last Candle Volume", format_volume(last["volume"]))

analysis: Optional[AnalysisResult] = st.session_state.analysis
overlays = build_overlays(
    analysis,
    OverlayOptions(
        show_ai_drawings=prefs.show_ai_drawings,
        show_w_signals=prefs.show_w_signals,
        show_ltf_fibonacci=prefs.show_ltf_fibonacci,
        w_signal_color=prefs.w_signal_color,
        w_signal_opacity=prefs.w_signal_opacity,
        signals_opacity=prefs.signals_opacity,
        theme=prefs.theme,
    ),
)
fig = build_chart_figure(candles, prefs, overlays)
st.plotly_chart(fig, use_container_width=True)


def render_points(title: str, points: List[AnalysisPoint]) -> None:
    if not points:
        return
    st.markdown(f"**{title}**")
    for point in points:
        if point.zona and len(point.zona) >= 2:
            where = f"${format_price(point.zona[0])} - ${format_price(point.zona[1])}"
        else:
            where = f"${format_price(point.nivel)}"
        tf = f" ({point.temporalidad})" if point.temporalidad else ""
        st.markdown(f"- {point.label}{tf}: {where}")


def render_setup(setup: Optional[TradeSetup]) -> None:
    if setup is None or setup.tipo == "ninguno":
        st.write("Sin setup recomendado.")
        return
    st.markdown(f"**{setup.tipo.upper()}** {setup.estilo_trade or ''}")
    if setup.descripcion_entrada:
        st.write(setup.descripcion_entrada)
    cols = st.columns(3)
    cols[0].metric("Stop Loss", f"${format_price(setup.stop_loss)}")
    cols[1].metric("TP1", f"${format_price(setup.take_profit_1)}")
    cols[2].metric("R/B", setup.ratio_riesgo_beneficio or "N/A")
    if setup.razon_fundamental:
        st.caption(setup.razon_fundamental)


def render_levels(title: str, levels: List[FibonacciLevel]) -> None:
    if not levels:
        return
    st.markdown(f"**{title}**")
    for level in levels:
        st.markdown(f"- {level.label}: ${format_price(level.price)}")


def render_fibonacci(label: str, impulse_payload: Optional[FibonacciImpulseAnalysis]) -> None:
    if impulse_payload is None:
        return
    impulse = impulse_payload.to_impulse()
    st.markdown(f"**{label} ({impulse.timeframe})**: {impulse.description}")
    retracement_levels, extension_levels = impulse_levels(impulse)
    render_levels("Niveles de Retroceso (A-B)", retracement_levels)
    render_levels("Niveles de Extensión (A-B-C)", extension_levels)


def render_analysis(result: AnalysisResult) -> None:
    general = result.analisis_general
    st.subheader("Estructura General de Mercado y Volumen")
    for tf, desc in general.estructura_mercado_resumen.model_dump(exclude_none=True).items():
        st.markdown(f"- **{tf.split('_', 1)[-1]}**: {desc}")
    if general.fase_wyckoff_actual:
        st.write(f"Fase Wyckoff: {general.fase_wyckoff_actual}")
    st.write(f"Sesgo General: {general.sesgo_direccional_general.upper()}")
    if general.interpretacion_volumen_detallada:
        st.write(general.interpretacion_volumen_detallada)

    st.subheader("Escenarios")
    for scenario in result.escenarios_probables:
        with st.expander(f"{scenario.nombre_escenario} ({scenario.probabilidad})"):
            st.write(scenario.descripcion_detallada)
            render_setup(scenario.trade_setup_asociado)
            if scenario.niveles_clave_de_invalidacion:
                st.caption(f"Invalidación: {scenario.niveles_clave_de_invalidacion}")

    if result.analisis_fibonacci:
        st.subheader("Análisis Fibonacci")
        render_fibonacci("HTF", result.analisis_fibonacci.htf)
        render_fibonacci("LTF", result.analisis_fibonacci.ltf)

    st.subheader("Niveles y Zonas Clave")
    render_points("Puntos clave", result.puntos_clave_grafico)
    render_points("Liquidez compradora", result.liquidez_importante.buy_side)
    render_points("Liquidez vendedora", result.liquidez_importante.sell_side)
    zones = result.zonas_criticas_oferta_demanda
    render_points("Oferta", zones.oferta_clave)
    render_points("Demanda", zones.demanda_clave)
    render_points("FVG", zones.fvg_importantes)

    conclusion = result.conclusion_recomendacion
    st.subheader("Conclusión y Recomendaciones")
    st.write(conclusion.resumen_ejecutivo)
    st.write(f"Próximo movimiento esperado: {conclusion.proximo_movimiento_esperado}")
    render_setup(conclusion.mejor_oportunidad_actual)
    if conclusion.advertencias_riesgos:
        st.warning(conclusion.advertencias_riesgos)


analysis_tab, chat_tab, templates_tab = st.tabs(["Análisis IA", "Chat IA", "Plantillas"])

with analysis_tab:
    if not config.llm.is_configured:
        st.info("Set GEMINI_API_KEY in your .env file to enable AI analysis.")
    elif st.button("Analyze chart", type="primary"):
        with st.spinner("Analyzing..."):
            try:
                analyst = GeminiAnalyst(config.llm)
                request = AnalysisRequest.from_chart(
                    symbol, timeframe, float(last["close"]), float(last["volume"])
                )
                st.session_state.analysis = analyst.analyze(request)
                st.rerun()
            except (ConfigurationError, LLMServiceError) as e:
                st.error(str(e))

    if analysis is not None:
        render_analysis(analysis)

with chat_tab:
    if not config.llm.is_configured:
        st.info("Clave API no configurada. El Chat IA no está disponible.")
    else:
        chat: Optional[ChatSession] = st.session_state.chat
        if chat is None:
            try:
                chat = ChatSession(config.llm, display_symbol(symbol), timeframe)
                st.session_state.chat = chat
            except TradeGuardError as e:
                st.error(str(e))

        if chat is not None:
            for message in chat.messages:
                with st.chat_message("user" if message.sender == "user" else "assistant"):
                    st.markdown(message.text)

            question = st.chat_input("Pregunta sobre el gráfico")
            if question:
                with st.chat_message("user"):
                    st.markdown(question)
                context = ChartContext(
                    symbol=display_symbol(symbol),
                    timeframe=timeframe,
                    data_source=data_source,
                    price=float(last["close"]),
                    volume=float(last["volume"]),
                    moving_averages=prefs.moving_averages,
                    theme=prefs.theme,
                    show_ai_drawings=prefs.show_ai_drawings,
                    analysis=analysis,
                )
                with st.chat_message("assistant"):
                    try:
                        st.write_stream(chat.stream(question, context))
                    except LLMServiceError as e:
                        st.error(str(e))

            if st.button("Clear chat"):
                chat.clear()
                st.rerun()

with templates_tab:
    with st.form("save_template"):
        name = st.text_input("Name")
        description = st.text_input("Description")
        make_default = st.checkbox("Use as default")
        if st.form_submit_button("Save current settings") and name.strip():
            template_id = templates.save_template(
                name.strip(), configuration_from(prefs), description or None, make_default
            )
            if make_default:
                templates.set_as_default(template_id)
            st.success(f"Template '{name}' saved")

    for template in templates.templates:
        cols = st.columns([4, 1, 1, 1])
        star = " ⭐" if template.is_default else ""
        cols[0].markdown(f"**{template.name}**{star}  \n{template.description or ''}")
        if cols[1].button("Load", key=f"load_{template.id}"):
            configuration = templates.load_template(template.id)
            if configuration is not None:
                save_preferences(apply_template(prefs, configuration))
                st.rerun()
        if cols[2].button("Default", key=f"default_{template.id}"):
            templates.set_as_default(template.id)
            st.rerun()
        if cols[3].button("Delete", key=f"delete_{template.id}"):
            templates.delete_template(template.id)
            st.rerun()

st.markdown("---")
st.caption("⚠️ Educational purposes only. Not financial advice.")
