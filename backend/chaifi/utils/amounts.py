"""
Fixed-point amount helpers.

Amounts travel as 2-decimal strings ("125.50"). Arithmetic is done on floats
and re-formatted after every step, so long runs of increments can drift by a
cent; summary recomputation is the correction path.
"""
import math
from typing import Any, Optional


def parse_amount(value: Any, strict: bool = False) -> float:
    """
    Parse a decimal string (or number) into a float.

    Args:
        value: String, int, float or None
        strict: Raise ValueError on missing/non-numeric input instead of
            returning 0.0

    Returns:
        Parsed amount
    """
    if value is None or isinstance(value, bool):
        if strict:
            raise ValueError(f"Invalid amount: {value!r}")
        return 0.0

    try:
        amount = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        if strict:
            raise ValueError(f"Invalid amount: {value!r}")
        return 0.0

    if math.isnan(amount) or math.isinf(amount):
        if strict:
            raise ValueError(f"Invalid amount: {value!r}")
        return 0.0

    return amount


def format_amount(amount: Optional[float]) -> str:
    """Render an amount with exactly two decimals."""
    value = float(amount or 0.0)
    # Normalise -0.00 produced by float noise around zero
    if abs(value) < 0.005:
        value = 0.0
    return f"{value:.2f}"


def add_amounts(current: Any, delta: Any) -> str:
    """Add a contribution to a stored amount string (lenient parsing)."""
    return format_amount(parse_amount(current) + parse_amount(delta))
