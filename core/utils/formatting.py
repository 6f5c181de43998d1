"""Numeric and display formatting helpers shared by the scoring code."""

import math


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero for positives.

    Python's built-in ``round`` uses banker's rounding (``round(2.5) == 2``);
    every score in this package rounds halves up instead (``2.5 -> 3``).

    Args:
        value: Value to round

    Returns:
        Rounded integer
    """
    return int(math.floor(value + 0.5))


def round_to(value: float, decimals: int = 2) -> float:
    """
    Round half-up to a fixed number of decimal places.

    Args:
        value: Value to round
        decimals: Number of decimal places

    Returns:
        Rounded float
    """
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def format_countdown(seconds: int) -> str:
    """Format a countdown as ``m:ss``."""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate text to maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
