"""Normalization helpers.

Centralizes permissive parsing of the loosely typed values the tracking
service sends (numbers, numeric strings, empty strings, nulls).
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any

from udptracker._constants import INVALID_DATE

_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def parse_float(value: Any) -> float:
    """Parse the leading numeric prefix of *value*.

    Never raises. Anything without a numeric prefix (``None``, ``""``,
    ``"abc"``, booleans, containers) yields ``math.nan``.
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return math.nan
    match = _FLOAT_PREFIX.match(value)
    if match is None:
        return math.nan
    try:
        return float(match.group(1))
    except (OverflowError, ValueError):
        return math.nan


def parse_int(value: Any) -> int | None:
    """Parse the leading integer prefix of *value*.

    Floats are truncated toward zero. Returns ``None`` when no integer can
    be extracted.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if not isinstance(value, str):
        return None
    match = _INT_PREFIX.match(value)
    if match is None:
        return None
    return int(match.group(1))


def format_timestamp(timestamp_ms: int | None) -> str:
    """Render epoch milliseconds in local time with the ``LC_TIME`` conventions (``%c``).

    The library never changes the process locale; applications adopt the
    host locale with ``locale.setlocale(locale.LC_TIME, "")`` at startup.
    """
    if timestamp_ms is None:
        return INVALID_DATE
    try:
        return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%c")
    except (OverflowError, OSError, ValueError):
        return INVALID_DATE


def is_finite(value: float) -> bool:
    return not (math.isnan(value) or math.isinf(value))
