"""LLM-backed chart analysis and chat."""

from tradeguard.llm.client import AnalysisRequest, ChatMessage, ChatSession, GeminiAnalyst
from tradeguard.llm.parsing import parse_analysis_text, repair_json, strip_code_fence
from tradeguard.llm.prompts import ChartContext, build_analysis_prompt, build_chat_message
from tradeguard.llm.schema import AnalysisPoint, AnalysisResult, fallback_analysis

__all__ = [
    "AnalysisRequest",
    "ChatMessage",
    "ChatSession",
    "GeminiAnalyst",
    "parse_analysis_text",
    "repair_json",
    "strip_code_fence",
    "ChartContext",
    "build_analysis_prompt",
    "build_chat_message",
    "AnalysisPoint",
    "AnalysisResult",
    "fallback_analysis",
]
