"""Turning raw model text into an AnalysisResult."""

import json
import re
from typing import Any, Dict
from loguru import logger
from pydantic import ValidationError

from tradeguard.llm.schema import AnalysisResult, fallback_analysis

FENCE_PATTERN = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)

REQUIRED_FIELDS = ("analisis_general", "escenarios_probables")


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    text = text.strip()
    match = FENCE_PATTERN.match(text)
    if match and match.group(2):
        return match.group(2).strip()
    return text


def repair_json(text: str) -> str:
    """Best-effort fix for a truncated JSON document.

    Drops a trailing comma, then appends the missing ``]`` followed by the
    missing ``}``. Brackets inside string values are counted too.

    Args:
        text: JSON text, possibly cut off

    Returns:
        Text that may now parse
    """
    repaired = text.strip()
    if repaired.endswith(","):
        repaired = repaired[:-1]

    missing_brackets = repaired.count("[") - repaired.count("]")
    missing_braces = repaired.count("{") - repaired.count("}")

    repaired += "]" * max(missing_brackets, 0)
    repaired += "}" * max(missing_braces, 0)
    return repaired


def _load(text: str) -> Dict[str, Any]:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Initial JSON parsing failed, attempting repair")
        logger.debug(f"Problematic JSON from model: {text}")
        return json.loads(repair_json(text))


def parse_analysis_text(text: str, symbol: str, timeframe: str) -> AnalysisResult:
    """Parse a model response, falling back when it cannot be used.

    Args:
        text: Raw response text
        symbol: Requested symbol (for the fallback)
        timeframe: Requested timeframe (for the fallback)

    Returns:
        The parsed analysis, or the fallback analysis
    """
    if not text or not text.strip():
        logger.warning("Empty response from model, returning fallback analysis")
        return fallback_analysis(symbol, timeframe)

    cleaned = strip_code_fence(text)
    try:
        data = _load(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"JSON repair also failed: {e}")
        return fallback_analysis(symbol, timeframe)

    if not isinstance(data, dict) or any(data.get(key) is None for key in REQUIRED_FIELDS):
        logger.warning("Parsed response is missing key fields, returning fallback analysis")
        return fallback_analysis(symbol, timeframe)

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        logger.error(f"Analysis payload failed validation: {e}")
        return fallback_analysis(symbol, timeframe)
