"""Confidence unit conversion.

Confidence is an integer percentage (0-100) everywhere inside the pipeline.
Providers and legacy rows sometimes report fractions (0-1) or numeric strings;
they are converted here, at the boundary.
"""

import math
from typing import Any, Optional


def to_percentage(value: Any) -> Optional[float]:
    """Read a loosely-typed confidence as an unrounded float in [0, 100].

    Returns ``None`` when the value is missing or not numeric.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        text = value.strip().rstrip("%").strip()
        try:
            value = float(text)
        except ValueError:
            return None

    if not isinstance(value, (int, float)):
        return None

    number = float(value)
    if number != number:  # NaN
        return None

    # Fractions such as 0.82 are read as 82%
    if isinstance(value, float) and 0 < number < 1:
        number *= 100

    return min(100.0, max(0.0, number))


def coerce_confidence(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Convert a loosely-typed confidence value to an int in [0, 100].

    Args:
        value: Raw value from a model response or a stored row
        default: Returned when the value is missing or not numeric

    Returns:
        Integer percentage, or ``default``
    """
    percentage = to_percentage(value)
    if percentage is None:
        return default
    return int(round(percentage))


def truncate_confidence(value: Any) -> Optional[int]:
    """Like :func:`coerce_confidence`, but never rounds up.

    Used where the integer is compared against a floor: 39.6 must stay 39.
    """
    percentage = to_percentage(value)
    if percentage is None:
        return None
    # 0.57 * 100 is 56.99999999999999
    return int(math.floor(round(percentage, 6)))


def fraction_to_percentage(similarity: Optional[float]) -> Optional[int]:
    """Convert a 0-1 similarity to a rounded percentage."""
    if similarity is None:
        return None
    return int(round(max(0.0, min(1.0, similarity)) * 100))
