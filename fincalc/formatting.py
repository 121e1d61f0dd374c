"""
Display formatting for calculation results.

Non-finite values are shown as the "Error" sentinel the host application
expects instead of "nan" or "inf".
"""

import math

ERROR_TEXT = "Error"

# Outside this range plain decimals become unreadable
SCIENTIFIC_UPPER = 1e15
SCIENTIFIC_LOWER = 1e-6


def format_number(value: float, max_fraction_digits: int = 10) -> str:
    """
    Format a value with thousands separators and trimmed trailing zeros.

    Args:
        value: Number to format
        max_fraction_digits: Digits kept after the decimal point

    Returns:
        e.g. "1,628.894627", "Error" for NaN or infinity
    """
    if not math.isfinite(value):
        return ERROR_TEXT

    magnitude = abs(value)
    if magnitude >= SCIENTIFIC_UPPER or 0 < magnitude < SCIENTIFIC_LOWER:
        mantissa, exponent = f"{value:.{max_fraction_digits}e}".split("e")
        mantissa = mantissa.rstrip("0").rstrip(".")
        return f"{mantissa}e{int(exponent)}"

    text = f"{value:,.{max_fraction_digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def format_percentage(value: float, decimals: int = 2) -> str:
    """Format a decimal rate as a percentage: 0.07177 -> "7.18%"."""
    if not math.isfinite(value):
        return ERROR_TEXT
    return f"{value * 100:,.{decimals}f}%"


def format_currency(value: float, symbol: str = "$", decimals: int = 2) -> str:
    if not math.isfinite(value):
        return ERROR_TEXT
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"
