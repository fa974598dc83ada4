"""
Numeric coercion helpers shared by the engine and the exporters.

Form values arrive as strings, numbers or nothing at all. Every numeric field
goes through ``parse_float`` / ``parse_int`` so that malformed input becomes a
default instead of an error, and every intermediate amount goes through
``round2``.
"""
import math
import re
import sys
from typing import Any

_FLOAT_PREFIX = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')
_INT_PREFIX = re.compile(r'^\s*([+-]?\d+)')

# Tolerance used to snap float artifacts such as 19.999999999999996 back to 20
NEAR_INT_TOLERANCE = 1e-9


def parse_float(value: Any, default: float = 0.0) -> float:
    """
    Parse a decimal from a form value, returning ``default`` when it cannot.

    Leading whitespace is skipped and trailing garbage ignored, so ``"12.5 SAR"``
    parses as 12.5. Booleans, ``None``, empty strings and non-finite results all
    resolve to ``default``.
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, (int, float)):
        try:
            result = float(value)
        except OverflowError:
            return default
    else:
        match = _FLOAT_PREFIX.match(str(value))
        if not match:
            return default
        try:
            result = float(match.group(1))
        except (ValueError, OverflowError):
            return default

    if not math.isfinite(result):
        return default
    return result


def parse_int(value: Any, default: int = 0) -> int:
    """
    Parse an integer count, truncating decimals ("2.7" -> 2).

    Counts too large to be represented as a float resolve to ``default`` so
    they cannot overflow the amounts they are multiplied into.
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return default
        result = math.trunc(value)
    else:
        match = _INT_PREFIX.match(str(value))
        if not match:
            return default
        try:
            result = int(match.group(1))
        except ValueError:
            # Beyond the interpreter's digit limit for int()
            return default

    if abs(result) > sys.float_info.max:
        return default
    return result


def round2(value: float) -> float:
    """
    Round to two decimals, half away from zero for positive amounts.

    Non-finite values become 0. Results within ``NEAR_INT_TOLERANCE`` of an
    integer are snapped to that integer.
    """
    if value is None or not math.isfinite(value):
        return 0.0

    scaled = (value + sys.float_info.epsilon) * 100
    if not math.isfinite(scaled):
        # Magnitudes this large carry no fractional part anyway
        return float(value)

    result = math.floor(scaled + 0.5) / 100
    near_int = math.floor(result + 0.5)
    if abs(result - near_int) < NEAR_INT_TOLERANCE:
        result = float(near_int)
    return result
