# src/scm_core/safe_math.py

import math
import numpy as np


def _is_finite(value) -> bool:
    try:
        return bool(np.isfinite(value))
    except TypeError:
        return False


def safe_number(value, fallback: float = 0.0) -> float:
    """
    Coerce value to a finite float.
    None, NaN, Infinity and non-numeric strings return fallback.
    """
    if value is None or isinstance(value, bool):
        return fallback
    try:
        num = float(value)
    except (TypeError, ValueError):
        return fallback
    return num if _is_finite(num) else fallback


def ensure_positive(value, fallback: float = 0.0) -> float:
    """Finite and > 0, else fallback."""
    num = safe_number(value, fallback=math.nan)
    return num if _is_finite(num) and num > 0 else fallback


def safe_divide(numerator, denominator, fallback: float = 0.0) -> float:
    num = safe_number(numerator, fallback=math.nan)
    den = safe_number(denominator, fallback=math.nan)

    if not _is_finite(num) or not _is_finite(den) or den == 0:
        return fallback

    result = num / den
    return result if _is_finite(result) else fallback


def safe_sqrt(value) -> float:
    num = safe_number(value, fallback=-1.0)
    if num < 0:
        return 0.0
    return float(np.sqrt(num))


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round halves upwards (2.5 -> 3, -2.5 -> -2).
    Built-in round() rounds halves to even, which KPI figures must not.
    """
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded
