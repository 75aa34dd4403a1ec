"""Pydantic models for the technical-analysis payload returned by the LLM.

Field names follow the JSON structure requested in the analysis prompt, so
they are in Spanish. Every nested field has a default and unknown keys are
ignored, which lets partially filled responses still render. A ``null`` from
the model means "use the default", and a malformed list item or Fibonacci
impulse is dropped on its own instead of invalidating the whole payload.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, List, Optional
from loguru import logger
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
    model_validator,
)

from tradeguard.analytics.fibonacci import FibonacciImpulse


def _drop_invalid_items(value: Any, handler: ValidatorFunctionWrapHandler) -> list:
    """Validate list items one by one, skipping the ones that fail."""
    if not isinstance(value, list):
        logger.warning(f"Expected a list from the model, got {type(value).__name__}; ignoring it")
        return []

    items = []
    for item in value:
        try:
            items.extend(handler([item]))
        except ValidationError as e:
            logger.warning(f"Skipping malformed item from the model ({e.error_count()} errors): {item!r}")
    return items


def _none_if_invalid(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    try:
        return handler(value)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed section from the model ({e.error_count()} errors): {value!r}")
        return None


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _nulls_to_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class AnalysisPoint(_Payload):
    """A level, zone or marker the model wants drawn on the chart."""

    tipo: str = ""
    zona: Optional[List[float]] = None  # [min, max]
    nivel: Optional[float] = None
    label: str = ""
    descripcion: Optional[str] = None
    temporalidad: Optional[str] = None
    mitigado: Optional[bool] = None
    importancia: Optional[str] = None  # alta | media | baja
    marker_time: Optional[int] = None  # bar time in seconds
    marker_position: Optional[str] = None  # aboveBar | belowBar | inBar
    marker_shape: Optional[str] = None  # arrowUp | arrowDown | circle | square
    marker_text: Optional[str] = None


PointList = Annotated[List[AnalysisPoint], WrapValidator(_drop_invalid_items)]


class SetupCalification(_Payload):
    calificacion: str = "C"
    confluencias: List[str] = Field(default_factory=list)


class TradeSetup(_Payload):
    tipo: str = "ninguno"  # largo | corto | ninguno
    estilo_trade: Optional[str] = None
    calificacion_setup: Annotated[Optional[SetupCalification], WrapValidator(_none_if_invalid)] = None
    descripcion_entrada: Optional[str] = None
    punto_entrada_ideal: Optional[float] = None
    zona_entrada: Optional[List[float]] = None
    stop_loss: float = 0.0
    gestion_stop_loss: Optional[str] = None
    take_profit_1: float = 0.0
    take_profit_2: Optional[float] = None
    take_profit_3: Optional[float] = None
    gestion_take_profit: Optional[str] = None
    razon_fundamental: str = ""
    confirmaciones_adicionales: List[str] = Field(default_factory=list)
    ratio_riesgo_beneficio: Optional[str] = None
    calificacion_confianza: Optional[str] = None


SetupOrNone = Annotated[Optional[TradeSetup], WrapValidator(_none_if_invalid)]


class ScenarioAnalysis(_Payload):
    nombre_escenario: str = ""
    probabilidad: str = "baja"
    descripcion_detallada: str = ""
    trade_setup_asociado: SetupOrNone = None
    niveles_clave_de_invalidacion: Optional[str] = None


ScenarioList = Annotated[List[ScenarioAnalysis], WrapValidator(_drop_invalid_items)]


class FibonacciLevelPayload(_Payload):
    level: float
    price: float
    label: str = ""


class FibonacciImpulseAnalysis(_Payload):
    temporalidad_analizada: str = ""
    descripcion_impulso: str = ""
    precio_inicio_impulso: float
    precio_fin_impulso: float
    precio_fin_retroceso: Optional[float] = None

    def to_impulse(self) -> FibonacciImpulse:
        return FibonacciImpulse(
            start=self.precio_inicio_impulso,
            end=self.precio_fin_impulso,
            retracement_end=self.precio_fin_retroceso,
            timeframe=self.temporalidad_analizada,
            description=self.descripcion_impulso,
        )


LevelList = Annotated[List[FibonacciLevelPayload], WrapValidator(_drop_invalid_items)]
ImpulseOrNone = Annotated[Optional[FibonacciImpulseAnalysis], WrapValidator(_none_if_invalid)]


class FibonacciAnalysis(_Payload):
    htf: ImpulseOrNone = None
    ltf: ImpulseOrNone = None
    niveles_retroceso: LevelList = Field(default_factory=list)
    niveles_extension: LevelList = Field(default_factory=list)


class MarketStructureSummary(_Payload):
    htf_1W: Optional[str] = None
    htf_1D: Optional[str] = None
    mtf_4H: Optional[str] = None
    ltf_1H: Optional[str] = None
    ltf_15M: Optional[str] = None


class GeneralAnalysis(_Payload):
    simbolo: str = ""
    temporalidad_principal_analisis: str = ""
    fecha_analisis: str = ""
    estructura_mercado_resumen: MarketStructureSummary = Field(default_factory=MarketStructureSummary)
    fase_wyckoff_actual: Optional[str] = None
    sesgo_direccional_general: str = "indefinido"
    comentario_volumen: Optional[str] = None
    interpretacion_volumen_detallada: Optional[str] = None
    comentario_funding_rate_oi: Optional[str] = None


class ContextualAnalysis(_Payload):
    correlacion_mercado: Optional[str] = None
    liquidez_sesiones: Optional[str] = None
    comentario_funding_rate_oi: Optional[str] = None


class Liquidity(_Payload):
    buy_side: PointList = Field(default_factory=list)
    sell_side: PointList = Field(default_factory=list)


class SupplyDemandZones(_Payload):
    oferta_clave: PointList = Field(default_factory=list)
    demanda_clave: PointList = Field(default_factory=list)
    fvg_importantes: PointList = Field(default_factory=list)


class Conclusion(_Payload):
    resumen_ejecutivo: str = ""
    proximo_movimiento_esperado: str = ""
    mejor_oportunidad_actual: SetupOrNone = None
    advertencias_riesgos: Optional[str] = None
    oportunidades_reentrada_detectadas: Optional[str] = None
    consideraciones_salida_trade: Optional[str] = None
    senales_confluencia_avanzada: Optional[str] = None


class PriceProjection(_Payload):
    camino_probable_1: List[float] = Field(default_factory=list)
    descripcion_camino_1: Optional[str] = None


class AnalysisResult(_Payload):
    """Complete analysis payload."""

    analisis_general: GeneralAnalysis = Field(default_factory=GeneralAnalysis)
    analisis_contextual: Annotated[Optional[ContextualAnalysis], WrapValidator(_none_if_invalid)] = None
    puntos_clave_grafico: PointList = Field(default_factory=list)
    liquidez_importante: Liquidity = Field(default_factory=Liquidity)
    zonas_criticas_oferta_demanda: SupplyDemandZones = Field(default_factory=SupplyDemandZones)
    analisis_fibonacci: Annotated[Optional[FibonacciAnalysis], WrapValidator(_none_if_invalid)] = None
    escenarios_probables: ScenarioList = Field(default_factory=list)
    conclusion_recomendacion: Conclusion = Field(default_factory=Conclusion)
    proyeccion_precio_visual: Annotated[Optional[PriceProjection], WrapValidator(_none_if_invalid)] = None

    def matches_chart(self, symbol: str, timeframe: str) -> bool:
        """True when the analysis was made for this display symbol and timeframe."""
        general = self.analisis_general
        return (
            general.simbolo == symbol
            and general.temporalidad_principal_analisis == timeframe.upper()
        )


def _no_setup() -> TradeSetup:
    return TradeSetup(
        tipo="ninguno",
        descripcion_entrada="No disponible",
        stop_loss=0,
        take_profit_1=0,
        calificacion_confianza="baja",
        razon_fundamental="Error técnico",
    )


def fallback_analysis(symbol: str, timeframe: str) -> AnalysisResult:
    """Analysis shown when the model response could not be used.

    Args:
        symbol: Symbol the analysis was requested for
        timeframe: Timeframe the analysis was requested for

    Returns:
        An AnalysisResult with an undetermined bias and a single fallback scenario
    """
    return AnalysisResult(
        analisis_general=GeneralAnalysis(
            simbolo=symbol,
            temporalidad_principal_analisis=timeframe,
            fecha_analisis=datetime.now(timezone.utc).isoformat(),
            estructura_mercado_resumen=MarketStructureSummary(
                ltf_1H="Análisis no disponible debido a error de parsing"
            ),
            sesgo_direccional_general="indefinido",
            interpretacion_volumen_detallada=(
                "No se pudo procesar el análisis de volumen debido a un error técnico."
            ),
        ),
        escenarios_probables=[
            ScenarioAnalysis(
                nombre_escenario="Análisis de Fallback",
                descripcion_detallada=(
                    "No se pudo completar el análisis debido a un error técnico. "
                    "Por favor, intenta de nuevo."
                ),
                probabilidad="baja",
                trade_setup_asociado=_no_setup(),
            )
        ],
        conclusion_recomendacion=Conclusion(
            resumen_ejecutivo=(
                "El análisis no pudo completarse debido a un error técnico. "
                "Recomendamos intentar el análisis nuevamente."
            ),
            proximo_movimiento_esperado="Indeterminado",
            mejor_oportunidad_actual=_no_setup(),
        ),
    )


def is_fallback(result: AnalysisResult) -> bool:
    """True for results produced by fallback_analysis."""
    return any(s.nombre_escenario == "Análisis de Fallback" for s in result.escenarios_probables)
