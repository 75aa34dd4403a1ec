"""Prompt templates for chart analysis and chat.

The model answers in Spanish, so the prompts are written in Spanish.
Placeholders use the ``{{NAME}}`` form; ``AUTO_GENERATED_TIMESTAMP_ISO8601``
is filled in by the client right before the request is sent.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from tradeguard.analytics.indicators.moving_averages import MovingAverageConfig
from tradeguard.llm.schema import AnalysisResult
from tradeguard.ui.formatting import format_price, format_volume

TIMESTAMP_PLACEHOLDER = "AUTO_GENERATED_TIMESTAMP_ISO8601"

STRATEGY_PROMPT_CORE = """
Tu rol es el de un analista de trading de élite, "Trader Análisis", especializado en análisis técnico multi-activo que combina Wyckoff, Smart Money Concepts (SMC) y análisis de sentimiento.

Principios Clave de Análisis:
1. Estructura de Mercado Jerárquica: HTF (Semanal, Diario) para la tendencia macro, MTF (4H) para confirmar el sesgo, LTF (1H, 15M) para entradas precisas. BOS confirma continuación; ChoCh sugiere reversión. Distingue Strong/Weak Highs/Lows.
2. Liquidez: pools Buy-Side y Sell-Side sobre/bajo máximos y mínimos clave, Equal Highs/Lows, sweeps e inducement.
3. Zonas de Interés (POIs): Order Blocks de oferta y demanda (mitigados o no), Fair Value Gaps, Breaker Blocks y Equilibrium (50%).
   Señales tipo "W": testeo de un POI seguido de una vela de rechazo fuerte con volumen. Si identificas una, incluye en 'puntos_clave_grafico' un objeto con "tipo" "ai_w_signal_bullish" o "ai_w_signal_bearish", "nivel", "marker_time" (timestamp Unix en segundos de la vela de confirmación), "marker_position" ("belowBar" o "aboveBar"), "marker_shape" ("arrowUp" o "arrowDown") y "marker_text" "W".
4. Metodología Wyckoff: fases de Acumulación, Reacumulación, Distribución y Redistribución, con sus eventos (PS, SC, AR, ST, Spring, SOS, LPS y sus equivalentes bajistas).
5. Volumen: confirma rupturas, retrocesos saludables y absorción. (Se proveerán datos de volumen, úsalos para tu análisis).
6. Fibonacci: identifica el impulso dominante en HTF y el impulso de la temporalidad actual, con su precio de inicio, fin y, si existe, fin del retroceso.
7. Proyección: si tienes una convicción razonable, proporciona en 'proyeccion_precio_visual.camino_probable_1' una secuencia de precios comenzando con el precio actual {{CURRENT_PRICE}}.

Instrucción de Análisis para {{SYMBOL}} en temporalidad de referencia {{TIMEFRAME}}:
Considera el precio actual de {{SYMBOL}} en {{CURRENT_PRICE}} (precios referidos a la temporalidad {{TIMEFRAME}}).
Tu análisis de estructura debe considerar múltiples temporalidades (15M, 1H, 4H, 1D, 1W), informando 'estructura_mercado_resumen'. La 'temporalidad_principal_analisis' en la respuesta JSON será {{TIMEFRAME}}.
"""

MARKET_CONTEXT_PROMPT = """
CONTEXTO DE MERCADO:
- Precio Actual de {{SYMBOL}}: {{CURRENT_PRICE}} en {{TIMEFRAME}}
- Volumen: {{VOLUME_LINE}}
- Adapta el análisis a la clase de activo (cripto, forex, índices, materias primas o acciones): sesiones, correlaciones, eventos macro y sentimiento.

**Instrucción**: Basa tu análisis en los principios SMC/Wyckoff adaptados a las características específicas del activo {{SYMBOL}}.
"""

JSON_OUTPUT_STRUCTURE_PROMPT = """
### FORMATO DE SALIDA ESTRICTO (JSON):
Genera la salida EXCLUSIVAMENTE en el siguiente formato JSON, sin texto fuera del objeto. Los precios deben ser números. 'marker_time' debe ser un timestamp Unix en segundos. Volumen de la última vela: {VOLUME_VALUE}.

{
  "analisis_general": {
    "simbolo": "{{SYMBOL}}",
    "temporalidad_principal_analisis": "{{TIMEFRAME}}",
    "fecha_analisis": "AUTO_GENERATED_TIMESTAMP_ISO8601",
    "estructura_mercado_resumen": {"htf_1W": "...", "htf_1D": "...", "mtf_4H": "...", "ltf_1H": "..."},
    "fase_wyckoff_actual": "...",
    "sesgo_direccional_general": "alcista | bajista | lateral | indefinido",
    "interpretacion_volumen_detallada": "..."
  },
  "analisis_contextual": {"correlacion_mercado": "...", "liquidez_sesiones": "...", "comentario_funding_rate_oi": "..."},
  "puntos_clave_grafico": [
    {"tipo": "poi_oferta", "zona": [2650.0, 2680.0], "label": "Bearish OB 4H", "temporalidad": "4H", "importancia": "alta", "mitigado": false},
    {"tipo": "liquidez_compradora", "nivel": 2700.0, "label": "BSL (Viejo High Diario)", "temporalidad": "1D"},
    {"tipo": "bos_bajista", "nivel": 2500.0, "label": "BOS 4H", "temporalidad": "4H"},
    {"tipo": "ai_w_signal_bullish", "label": "W Bullish Confirmed", "nivel": 2425.0, "temporalidad": "1H", "marker_time": 1678886400, "marker_position": "belowBar", "marker_shape": "arrowUp", "marker_text": "W"}
  ],
  "liquidez_importante": {
    "buy_side": [{"tipo": "liquidez_compradora", "nivel": 2800.0, "label": "EQH Diario", "temporalidad": "1D", "importancia": "alta"}],
    "sell_side": [{"tipo": "liquidez_vendedora", "nivel": 2350.0, "label": "EQL Semanal", "temporalidad": "1W", "importancia": "alta"}]
  },
  "zonas_criticas_oferta_demanda": {
    "oferta_clave": [{"tipo": "poi_oferta", "zona": [2750.0, 2780.0], "label": "Supply Zone HTF", "temporalidad": "1D", "importancia": "alta"}],
    "demanda_clave": [{"tipo": "poi_demanda", "zona": [2300.0, 2330.0], "label": "Demand Zone HTF", "temporalidad": "1D", "importancia": "media"}],
    "fvg_importantes": [{"tipo": "fvg_alcista", "zona": [2450.0, 2465.0], "label": "Bullish FVG 4H", "temporalidad": "4H"}]
  },
  "analisis_fibonacci": {
    "htf": {"temporalidad_analizada": "4H", "descripcion_impulso": "...", "precio_inicio_impulso": 3200.0, "precio_fin_impulso": 2800.0, "precio_fin_retroceso": 2950.0},
    "ltf": {"temporalidad_analizada": "{{TIMEFRAME}}", "descripcion_impulso": "...", "precio_inicio_impulso": 2850.0, "precio_fin_impulso": 2900.0, "precio_fin_retroceso": null}
  },
  "escenarios_probables": [
    {
      "nombre_escenario": "Escenario Principal: ...",
      "probabilidad": "alta",
      "descripcion_detallada": "...",
      "trade_setup_asociado": {
        "tipo": "corto", "estilo_trade": "swing",
        "calificacion_setup": {"calificacion": "A", "confluencias": ["..."]},
        "descripcion_entrada": "...", "zona_entrada": [3100.0, 3150.0],
        "stop_loss": 3210.0, "take_profit_1": 2950.0, "take_profit_2": 2810.0,
        "razon_fundamental": "...", "ratio_riesgo_beneficio": "1:3"
      },
      "niveles_clave_de_invalidacion": "..."
    }
  ],
  "conclusion_recomendacion": {
    "resumen_ejecutivo": "...",
    "proximo_movimiento_esperado": "...",
    "mejor_oportunidad_actual": null,
    "advertencias_riesgos": "..."
  },
  "proyeccion_precio_visual": {"camino_probable_1": [{{CURRENT_PRICE}}, 2670.0, 2550.0], "descripcion_camino_1": "..."}
}
"""

CHAT_SYSTEM_PROMPT_TEMPLATE = """
Eres "TradeGuru AI", un analista de trading de élite especializado en análisis técnico multi-activo. Dominas Smart Money Concepts (SMC), la metodología Wyckoff y las particularidades de cada clase de activo (cripto, forex, índices, materias primas y acciones).

Gráfico inicial: {{SYMBOL}} en {{TIMEFRAME}}.

Instrucciones Operativas:
1. Recibirás con cada pregunta el contexto del gráfico (símbolo, temporalidad, precio, volumen, exchange) y, cuando exista, el análisis técnico previo. Úsalo siempre como base.
2. Si la temporalidad del análisis difiere de la vista actual, explica cómo se traduce entre temporalidades.
3. Traduce el análisis técnico a acciones concretas, explica conceptos SMC/Wyckoff y aporta una perspectiva de riesgo adecuada al activo.
4. Responde de forma directa y profesional, en español técnico y con Markdown estructurado.
"""


def _number(value: float) -> str:
    """Render a number the way it is read in the prompt (no trailing .0)."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def _substitute(template: str, symbol: str, timeframe: str, current_price: float) -> str:
    return (
        template.replace("{{SYMBOL}}", symbol)
        .replace("{{TIMEFRAME}}", timeframe)
        .replace("{{CURRENT_PRICE}}", _number(current_price))
    )


def build_analysis_prompt(
    symbol: str,
    timeframe: str,
    current_price: float,
    latest_volume: Optional[float] = None,
) -> str:
    """Assemble the full analysis prompt.

    Args:
        symbol: Display symbol (e.g., 'ETH/USDT')
        timeframe: Reference timeframe as shown to the model (e.g., '1H')
        current_price: Last traded price
        latest_volume: Volume of the last candle, if known

    Returns:
        Strategy core, market context and JSON structure joined by blank lines
    """
    if latest_volume is not None:
        volume_line = f"El volumen de la última vela fue {format_volume(latest_volume)}"
        volume_value = format_volume(latest_volume)
    else:
        volume_line = "Información de volumen no disponible para la última vela."
        volume_value = "N/A"

    core = _substitute(STRATEGY_PROMPT_CORE, symbol, timeframe, current_price)
    context = _substitute(MARKET_CONTEXT_PROMPT, symbol, timeframe, current_price)
    context = context.replace("{{VOLUME_LINE}}", volume_line)
    structure = _substitute(JSON_OUTPUT_STRUCTURE_PROMPT, symbol, timeframe, current_price)
    structure = structure.replace("{VOLUME_VALUE}", volume_value)

    return f"{core}\n\n{context}\n\n{structure}"


def build_chat_system_prompt(symbol: str, timeframe: str) -> str:
    """System instruction for a chat session on the given chart."""
    return (
        CHAT_SYSTEM_PROMPT_TEMPLATE.replace("{{SYMBOL}}", symbol)
        .replace("{{TIMEFRAME}}", timeframe.upper())
    )


@dataclass
class ChartContext:
    """What the user is looking at when asking a chat question."""

    symbol: str
    timeframe: str
    data_source: str
    price: Optional[float] = None
    volume: Optional[float] = None
    moving_averages: List[MovingAverageConfig] = field(default_factory=list)
    theme: str = "dark"
    show_ai_drawings: bool = True
    analysis: Optional[AnalysisResult] = None

    def describe(self) -> str:
        """Chart context block prepended to each chat question."""
        price = f"${format_price(self.price)}" if self.price else "N/A"
        active_mas = ", ".join(
            f"{ma.type}{ma.period}" for ma in self.moving_averages if ma.visible
        )
        drawings = "Visibles" if self.show_ai_drawings else "Ocultos"
        return (
            "--- CONTEXTO DEL GRÁFICO ACTUAL ---\n"
            f"Símbolo: {self.symbol}\n"
            f"Temporalidad: {self.timeframe.upper()}\n"
            f"Precio Actual: {price}\n"
            f"Volumen Última Vela: {format_volume(self.volume)}\n"
            f"Exchange: {self.data_source.upper()}\n"
            "\n"
            "El usuario está viendo un gráfico de trading en tiempo real con las siguientes configuraciones:\n"
            f"- Medias móviles activas: {active_mas}\n"
            f"- Tema: {self.theme}\n"
            f"- Dibujos de análisis IA: {drawings}\n"
            "--- FIN DEL CONTEXTO DEL GRÁFICO ---\n"
        )


def build_chat_message(text: str, context: ChartContext) -> str:
    """Wrap a user question with chart context.

    The previous analysis is embedded only when it was made for the same
    symbol and timeframe as the chart being viewed.

    Args:
        text: The user's question
        context: Current chart context

    Returns:
        Message text sent to the model
    """
    question = text.strip()
    chart_context = context.describe()
    analysis = context.analysis

    if analysis is not None and analysis.matches_chart(context.symbol, context.timeframe):
        payload = analysis.model_dump_json(indent=2, exclude_none=True)
        return (
            "--- INICIO DEL CONTEXTO DE ANÁLISIS ---\n"
            f"{chart_context}\n"
            "\n"
            "ANÁLISIS TÉCNICO PREVIO DISPONIBLE:\n"
            f"{payload}\n"
            "--- FIN DEL CONTEXTO DE ANÁLISIS ---\n"
            "\n"
            f"Pregunta del usuario: {question}"
        )

    return f"{chart_context}\n\nPregunta del usuario: {question}"
