"""Configuration management for the charting dashboard."""

import os
import sys
from pathlib import Path
from typing import Optional
from dataclasses import dataclass
from dotenv import load_dotenv
from loguru import logger

PLACEHOLDER_API_KEYS = {
    "",
    "TU_CLAVE_API_DE_GEMINI_AQUI",
    "your_gemini_api_key_here",
}


def mask_key(key: Optional[str]) -> str:
    """Show only the first and last four characters of a secret."""
    if not key:
        return "None"
    if len(key) < 8:
        return "***"
    return f"{key[:4]}...{key[-4:]}"


@dataclass
class ExchangeConfig:
    """Credentials of one exchange; candles are public so both may be None."""

    api_key: Optional[str] = None
    api_secret: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str) -> "ExchangeConfig":
        """Read ``{prefix}_API_KEY`` and ``{prefix}_SECRET``."""
        return cls(
            api_key=os.getenv(f"{prefix}_API_KEY"),
            api_secret=os.getenv(f"{prefix}_SECRET"),
        )

    def log_safe(self) -> str:
        return f"api_key={mask_key(self.api_key)}, api_secret={mask_key(self.api_secret)}"


@dataclass
class LLMConfig:
    """Gemini API configuration."""

    api_key: Optional[str] = None
    model_name: str = "gemini-2.5-flash"
    temperature: float = 0.2
    max_output_tokens: int = 8192

    @property
    def is_configured(self) -> bool:
        """True when a non-placeholder key is present."""
        return bool(self.api_key) and self.api_key not in PLACEHOLDER_API_KEYS


@dataclass
class StorageConfig:
    """Where preferences and templates are persisted."""

    data_dir: str = "./data"

    def __post_init__(self):
        """Ensure directories exist."""
        Path(self.data_dir).mkdir(parents=True, exist_ok=True)

    @property
    def preferences_path(self) -> Path:
        return Path(self.data_dir) / "preferences.json"

    @property
    def templates_path(self) -> Path:
        return Path(self.data_dir) / "templates.json"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    log_file: Optional[str] = "./logs/tradeguard.log"

    def __post_init__(self):
        """Ensure log directory exists."""
        if self.log_file:
            Path(self.log_file).parent.mkdir(parents=True, exist_ok=True)


@dataclass
class Config:
    """Main configuration class."""

    binance: ExchangeConfig
    bingx: ExchangeConfig
    llm: LLMConfig
    storage: StorageConfig
    logging: LoggingConfig

    default_symbol: str = "ETHUSDT"
    default_timeframe: str = "1h"
    default_data_source: str = "binance"
    candle_limit: int = 500
    request_timeout: int = 30

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        load_dotenv()

        binance = ExchangeConfig.from_env("BINANCE")
        bingx = ExchangeConfig.from_env("BINGX")

        llm = LLMConfig(
            api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
            model_name=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            temperature=float(os.getenv("GEMINI_TEMPERATURE", "0.2")),
            max_output_tokens=int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "8192")),
        )

        storage = StorageConfig(data_dir=os.getenv("TRADEGUARD_DATA_DIR", "./data"))

        logging_config = LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "./logs/tradeguard.log") or None,
        )

        config = cls(
            binance=binance,
            bingx=bingx,
            llm=llm,
            storage=storage,
            logging=logging_config,
            default_symbol=os.getenv("DEFAULT_SYMBOL", "ETHUSDT"),
            default_timeframe=os.getenv("DEFAULT_TIMEFRAME", "1h"),
            default_data_source=os.getenv("DEFAULT_DATA_SOURCE", "binance"),
            candle_limit=int(os.getenv("CANDLE_LIMIT", "500")),
            request_timeout=int(os.getenv("REQUEST_TIMEOUT", "30")),
        )

        if not config.llm.is_configured:
            logger.warning("Gemini API key is not set or is a placeholder; AI analysis disabled")

        logger.info("Configuration loaded successfully")
        return config

    def log_summary(self) -> None:
        """Log a summary of configuration (safe for logs)."""
        logger.info(f"Binance: {self.binance.log_safe()}")
        logger.info(f"BingX: {self.bingx.log_safe()}")
        logger.info(f"Gemini model: {self.llm.model_name} (key configured: {self.llm.is_configured})")
        logger.info(f"Data dir: {self.storage.data_dir}")
        logger.info(f"Log level: {self.logging.level}")


def configure_logging(logging_config: LoggingConfig) -> None:
    """Install loguru sinks for stderr and the optional log file."""
    logger.remove()
    logger.add(sys.stderr, level=logging_config.level.upper())
    if logging_config.log_file:
        logger.add(
            logging_config.log_file,
            level=logging_config.level.upper(),
            rotation="10 MB",
            retention=5,
        )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    _config = Config.from_env()
    return _config
