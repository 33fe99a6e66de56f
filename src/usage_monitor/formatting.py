"""Human-readable rendering of usage values for notifications and the CLI."""

import math

BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB", "PB")

PROGRESS_SEGMENTS = 10


def _trim(number: float, places: int) -> str:
    text = f"{number:,.{places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_bytes(value: float) -> str:
    """Binary-prefixed size with at most two decimals, e.g. ``1.5 GB``."""
    if value <= 0 or not math.isfinite(value):
        return "0 Bytes"
    exponent = 0
    while value >= 1024 and exponent < len(BYTE_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{_trim(value, 2).replace(',', '')} {BYTE_UNITS[exponent]}"


def format_number(value: float) -> str:
    """Thousands-separated number with up to three decimals."""
    return _trim(value, 3)


def format_value(value: float, unit: str, unlimited: bool = False) -> str:
    """Format ``value`` in its reporting unit; unlimited metrics read ``Unlimited``."""
    if unlimited:
        return "Unlimited"
    if unit == "bytes":
        return format_bytes(value)
    return f"{format_number(round(value))} {unit}"


def progress_bar(percent: float, alert: float = 90.0, warning: float = 75.0) -> str:
    """Ten-square emoji bar coloured by severity."""
    filled = max(0, min(round(percent / 10), PROGRESS_SEGMENTS))
    if percent >= alert:
        square = ":red_square:"
    elif percent >= warning:
        square = ":orange_square:"
    else:
        square = ":green_square:"
    return square * filled + ":white_large_square:" * (PROGRESS_SEGMENTS - filled)
