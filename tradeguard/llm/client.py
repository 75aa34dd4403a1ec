"""Gemini client for chart analysis and chat."""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, List, Optional

from google import genai
from google.genai import types
from loguru import logger

from tradeguard.config import LLMConfig, PLACEHOLDER_API_KEYS
from tradeguard.data.symbols import display_symbol
from tradeguard.exceptions import ConfigurationError, LLMServiceError
from tradeguard.llm.parsing import parse_analysis_text
from tradeguard.llm.prompts import (
    TIMESTAMP_PLACEHOLDER,
    ChartContext,
    build_analysis_prompt,
    build_chat_message,
    build_chat_system_prompt,
)
from tradeguard.llm.schema import AnalysisResult, fallback_analysis


def validate_api_key(api_key: Optional[str]) -> str:
    """Return the key, or raise when it is missing or a placeholder."""
    if not api_key or api_key in PLACEHOLDER_API_KEYS:
        raise ConfigurationError(
            "Gemini API key is not configured. Set GEMINI_API_KEY in your environment."
        )
    return api_key


def describe_api_error(error: Exception) -> str:
    """Actionable message for a failed Gemini call."""
    message = str(error)
    if "API_KEY_INVALID" in message or "API key not valid" in message:
        return "Gemini API key is invalid. Please check your GEMINI_API_KEY configuration."
    if "quota" in message.lower():
        return "Gemini API quota exceeded. Please check your quota or try again later."
    return f"Gemini API error: {message}"


@dataclass
class AnalysisRequest:
    """Chart state an analysis is requested for."""

    symbol: str  # display form, e.g. 'ETH/USDT'
    timeframe: str  # upper case, e.g. '1H'
    current_price: float
    latest_volume: Optional[float] = None

    @classmethod
    def from_chart(
        cls,
        symbol: str,
        timeframe: str,
        current_price: float,
        latest_volume: Optional[float] = None,
    ) -> "AnalysisRequest":
        """Build a request from an exchange symbol and timeframe."""
        return cls(
            symbol=display_symbol(symbol),
            timeframe=timeframe.upper(),
            current_price=current_price,
            latest_volume=latest_volume,
        )


class GeminiAnalyst:
    """Requests a structured technical analysis from Gemini."""

    def __init__(self, config: LLMConfig, client: Optional[Any] = None):
        """Initialize the analyst.

        Args:
            config: Gemini settings
            client: Pre-built genai client (tests inject a mock)
        """
        self.config = config
        api_key = validate_api_key(config.api_key)
        self.client = client or genai.Client(api_key=api_key)

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Run the analysis.

        Args:
            request: Chart state to analyze

        Returns:
            Parsed analysis, or the fallback analysis when the response is unusable

        Raises:
            LLMServiceError: If the API call fails
        """
        prompt = build_analysis_prompt(
            request.symbol,
            request.timeframe,
            request.current_price,
            request.latest_volume,
        )
        prompt = prompt.replace(TIMESTAMP_PLACEHOLDER, datetime.now(timezone.utc).isoformat())

        logger.info(f"Requesting analysis for {request.symbol} {request.timeframe}")
        try:
            response = self.client.models.generate_content(
                model=self.config.model_name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    temperature=self.config.temperature,
                    max_output_tokens=self.config.max_output_tokens,
                ),
            )
        except Exception as e:
            logger.error(f"Gemini analysis call failed: {e}")
            raise LLMServiceError(describe_api_error(e)) from e

        text = getattr(response, "text", None)
        if not text:
            logger.warning("No text response from Gemini, returning fallback analysis")
            return fallback_analysis(request.symbol, request.timeframe)

        logger.debug(f"Raw Gemini response: {text}")
        return parse_analysis_text(text, request.symbol, request.timeframe)


@dataclass
class ChatMessage:
    """One entry of the chat transcript."""

    sender: str  # 'user' | 'ai'
    text: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))


class ChatSession:
    """Streaming chat about the chart, keeping a transcript."""

    def __init__(
        self,
        config: LLMConfig,
        symbol: str,
        timeframe: str,
        client: Optional[Any] = None,
    ):
        """Initialize the session.

        Args:
            config: Gemini settings
            symbol: Display symbol of the chart
            timeframe: Chart timeframe
            client: Pre-built genai client (tests inject a mock)
        """
        self.config = config
        api_key = validate_api_key(config.api_key)
        self.client = client or genai.Client(api_key=api_key)
        self.symbol = symbol
        self.timeframe = timeframe
        self.messages: List[ChatMessage] = []
        self._chat = self._create_chat()

    def _create_chat(self) -> Any:
        try:
            return self.client.chats.create(
                model=self.config.model_name,
                config=types.GenerateContentConfig(
                    system_instruction=build_chat_system_prompt(self.symbol, self.timeframe),
                ),
            )
        except Exception as e:
            logger.error(f"Failed to initialize chat session: {e}")
            raise LLMServiceError(f"Chat initialization failed: {e}") from e

    def stream(self, text: str, context: ChartContext) -> Iterator[str]:
        """Send a question and yield the reply as it arrives.

        The user message and the final reply are appended to ``messages``.
        When the caller stops iterating early, the partial reply is recorded.

        Args:
            text: The user's question
            context: Current chart context

        Yields:
            Reply chunks

        Raises:
            LLMServiceError: If the API call fails; an ``Error: ...`` AI
                message is recorded first
        """
        question = text.strip()
        if not question:
            return

        self.messages.append(ChatMessage(sender="user", text=question))
        prompt = build_chat_message(question, context)

        reply = ""
        try:
            for chunk in self._chat.send_message_stream(prompt):
                piece = chunk.text or ""
                reply += piece
                yield piece
        except GeneratorExit:
            # caller stopped reading; keep what was shown
            self.messages.append(ChatMessage(sender="ai", text=reply))
            raise
        except Exception as e:
            logger.error(f"Error sending message to Gemini chat: {e}")
            self.messages.append(ChatMessage(sender="ai", text=f"Error: {e}"))
            raise LLMServiceError(f"Failed to get a reply from the model: {e}") from e

        self.messages.append(ChatMessage(sender="ai", text=reply))

    def send(self, text: str, context: ChartContext) -> str:
        """Send a question and return the complete reply."""
        return "".join(self.stream(text, context))

    def clear(self) -> None:
        """Forget the transcript and start a fresh model session."""
        self.messages = []
        self._chat = self._create_chat()
        logger.info("Chat history cleared")
