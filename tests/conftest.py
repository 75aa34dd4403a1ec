"""Shared pytest fixtures for the trading dashboard."""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import AsyncMock, Mock

import numpy as np
import pandas as pd
import pytest
from pandas import DataFrame

from tradeguard.config import LLMConfig
from tradeguard.llm.schema import AnalysisResult


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_ohlcv_data() -> DataFrame:
    """Generate sample hourly candles.

    Returns:
        DataFrame with columns: timestamp, open, high, low, close, volume
    """
    np.random.seed(42)
    periods = 300
    start_time = datetime(2024, 1, 1)

    timestamps = [start_time + timedelta(hours=i) for i in range(periods)]
    base_price = 2500.0

    returns = np.random.normal(0, 0.002, periods)
    prices = base_price * np.exp(np.cumsum(returns))
    close = prices * (1 + np.random.normal(0, 0.001, periods))

    data = {
        "timestamp": timestamps,
        "open": prices,
        "high": np.maximum(prices, close) * (1 + np.abs(np.random.normal(0, 0.002, periods))),
        "low": np.minimum(prices, close) * (1 - np.abs(np.random.normal(0, 0.002, periods))),
        "close": close,
        "volume": np.random.uniform(100, 1000, periods),
    }

    df = pd.DataFrame(data)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return df


@pytest.fixture
def raw_klines() -> List[List[Any]]:
    """Raw ccxt OHLCV rows."""
    return [
        [1704067200000, 2500.0, 2510.0, 2490.0, 2505.0, 1000.0],
        [1704070800000, 2505.0, 2520.0, 2500.0, 2515.0, 1100.0],
        [1704074400000, 2515.0, 2530.0, 2510.0, 2525.0, 1200.0],
    ]


# ============================================================================
# Exchange Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_exchange_response() -> Dict[str, Any]:
    """Mock ccxt ticker response."""
    return {
        "symbol": "ETH/USDT:USDT",
        "timestamp": 1704067200000,
        "datetime": "2024-01-01T00:00:00.000Z",
        "high": 2550.0,
        "low": 2450.0,
        "last": 2500.0,
        "percentage": -0.2,
        "baseVolume": 1234.56,
        "quoteVolume": 3086400.0,
    }


@pytest.fixture
def mock_async_exchange(raw_klines, mock_exchange_response):
    """Mock async ccxt exchange instance."""
    exchange = AsyncMock()
    exchange.fetch_ohlcv = AsyncMock(return_value=raw_klines)
    exchange.fetch_ticker = AsyncMock(return_value=mock_exchange_response)
    exchange.close = AsyncMock()
    return exchange


# ============================================================================
# WebSocket Fixtures
# ============================================================================


@pytest.fixture
def mock_websocket():
    """Mock WebSocket connection."""
    ws = AsyncMock()
    ws.send = AsyncMock()
    ws.close = AsyncMock()
    return ws


@pytest.fixture
def binance_kline_message() -> Dict[str, Any]:
    """Binance futures kline event."""
    return {
        "e": "kline",
        "E": 1704067230000,
        "s": "ETHUSDT",
        "k": {
            "t": 1704067200000,
            "T": 1704070799999,
            "s": "ETHUSDT",
            "i": "1h",
            "o": "2500.00",
            "h": "2510.00",
            "l": "2490.00",
            "c": "2505.50",
            "v": "1000.5",
            "x": False,
        },
    }


@pytest.fixture
def bingx_kline_message() -> Dict[str, Any]:
    """BingX swap kline push."""
    return {
        "code": 0,
        "dataType": "ETH-USDT@kline_1h",
        "s": "ETH-USDT",
        "data": [
            {"c": "2505.5", "o": "2500.0", "h": "2510.0", "l": "2490.0", "v": "321.4", "T": 1704067200000}
        ],
    }


# ============================================================================
# LLM Fixtures
# ============================================================================


@pytest.fixture
def llm_config() -> LLMConfig:
    """Gemini settings with a usable test key."""
    return LLMConfig(api_key="test-gemini-key", model_name="gemini-test")


@pytest.fixture
def analysis_payload() -> Dict[str, Any]:
    """Analysis payload as returned by the model."""
    return {
        "analisis_general": {
            "simbolo": "ETH/USDT",
            "temporalidad_principal_analisis": "1H",
            "fecha_analisis": "2024-01-01T00:00:00Z",
            "estructura_mercado_resumen": {"htf_1D": "Alcista", "ltf_1H": "Retroceso"},
            "sesgo_direccional_general": "alcista",
        },
        "puntos_clave_grafico": [
            {"tipo": "poi_demanda", "zona": [2400.0, 2430.0], "label": "Bullish OB 1D", "temporalidad": "1D", "importancia": "alta"},
            {"tipo": "bos_bajista", "nivel": 2500.0, "label": "BOS 4H", "temporalidad": "4H"},
            {
                "tipo": "ai_w_signal_bullish",
                "label": "W Bullish Confirmed",
                "nivel": 2425.0,
                "temporalidad": "1H",
                "marker_time": 1704067200,
                "marker_position": "belowBar",
                "marker_shape": "arrowUp",
                "marker_text": "W",
            },
        ],
        "liquidez_importante": {
            "buy_side": [{"tipo": "liquidez_compradora", "nivel": 2800.0, "label": "EQH Diario", "temporalidad": "1D"}],
            "sell_side": [{"tipo": "liquidez_vendedora", "nivel": 2350.0, "label": "EQL Semanal", "temporalidad": "1w", "marker_time": 1704070800}],
        },
        "zonas_criticas_oferta_demanda": {
            "oferta_clave": [{"tipo": "poi_oferta", "zona": [2750.0, 2780.0], "label": "Supply HTF", "temporalidad": "1D"}],
            "demanda_clave": [{"tipo": "poi_demanda", "nivel": 2300.0, "label": "Demand HTF", "temporalidad": "1D"}],
            "fvg_importantes": [{"tipo": "fvg_alcista", "zona": [2450.0, 2465.0], "label": "Bullish FVG 4H", "temporalidad": "4h"}],
        },
        "analisis_fibonacci": {
            "htf": {
                "temporalidad_analizada": "4H",
                "descripcion_impulso": "Impulso alcista",
                "precio_inicio_impulso": 100.0,
                "precio_fin_impulso": 200.0,
                "precio_fin_retroceso": 150.0,
            },
            "ltf": {
                "temporalidad_analizada": "1H",
                "descripcion_impulso": "Impulso menor",
                "precio_inicio_impulso": 180.0,
                "precio_fin_impulso": 200.0,
                "precio_fin_retroceso": None,
            },
        },
        "escenarios_probables": [
            {
                "nombre_escenario": "Escenario Principal",
                "probabilidad": "alta",
                "descripcion_detallada": "Continuación alcista",
                "trade_setup_asociado": {
                    "tipo": "largo",
                    "stop_loss": 2380.0,
                    "take_profit_1": 2700.0,
                    "razon_fundamental": "Demanda HTF",
                },
            }
        ],
        "conclusion_recomendacion": {
            "resumen_ejecutivo": "Sesgo alcista",
            "proximo_movimiento_esperado": "Barrido de SSL y subida",
        },
        "campo_desconocido": "ignored",
    }


@pytest.fixture
def analysis_result(analysis_payload) -> AnalysisResult:
    """Validated analysis result."""
    return AnalysisResult.model_validate(analysis_payload)


@pytest.fixture
def mock_genai_client():
    """Mock google-genai client."""
    client = Mock()
    client.models.generate_content = Mock()
    client.chats.create = Mock()
    return client


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Temporary directory for preferences and templates."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def test_env_vars(monkeypatch, tmp_path):
    """Set test environment variables."""
    monkeypatch.setenv("BINANCE_API_KEY", "test_api_key")
    monkeypatch.setenv("BINANCE_SECRET", "test_secret")
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.setenv("TRADEGUARD_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_FILE", "")
