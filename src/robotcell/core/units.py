"""
Shared tolerances and number formatting.

Robot controllers are picky about numeric literals, so every emitter formats
numbers through :func:`format_number`: rounded half away from zero, trailing
zeros stripped and never a negative zero.
"""

import math
from decimal import ROUND_HALF_UP, Decimal

DISTANCE_TOL = 0.001
ANGLE_TOL = 0.001
TIME_TOL = 0.00001
UNIT_TOL = 0.000001
SINGULARITY_TOL = 0.0001

HALF_PI = math.pi * 0.5


def format_number(value: float, decimals: int = 3) -> str:
    """
    Format a number with at most ``decimals`` decimal places.

    Args:
        value: Number to format.
        decimals: Maximum number of decimal places.

    Returns:
        The shortest textual form, e.g. ``format_number(41.25701, 4) == "41.257"``.
    """
    if not math.isfinite(value):
        return str(value)

    quantum = Decimal(1).scaleb(-decimals)
    text = format(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text
