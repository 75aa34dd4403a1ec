"""Display formatting helpers."""

from typing import Optional


def format_price(value: Optional[float]) -> str:
    """Format a price with 4 decimals below 1 and 2 decimals otherwise.

    Args:
        value: Price, or None

    Returns:
        Formatted price, 'N/A' when missing
    """
    if value is None:
        return "N/A"
    decimals = 4 if abs(value) < 1 else 2
    return f"{value:.{decimals}f}"


def format_volume(value: Optional[float]) -> str:
    """Thousands-separated volume, 'N/A' when missing or zero."""
    if not value:
        return "N/A"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_percent(value: Optional[float]) -> str:
    """Signed percentage with 2 decimals."""
    if value is None:
        return "N/A"
    return f"{value:+.2f}%"
