"""Exception types raised by the dashboard services."""


class TradeGuardError(Exception):
    """Base exception for the package."""


class ConfigurationError(TradeGuardError):
    """Raised when a required setting (such as an API key) is missing."""


class LLMServiceError(TradeGuardError):
    """Raised when the language-model API call fails."""


class ExchangeDataError(TradeGuardError):
    """Raised for unsupported data sources or timeframes."""
