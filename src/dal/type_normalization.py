"""Conversion of MariaDB result values into JSON-safe scalars.

Integers wider than the IEEE-754 safe range are rendered as exact decimal
strings so that JSON consumers that parse numbers as doubles never lose digits.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Tuple

MAX_SAFE_INTEGER = 2**53 - 1


def normalize_value(value: Any) -> Any:
    """Recursively convert a single value into a transport-safe representation."""
    if value is None or isinstance(value, (bool, str, float)):
        return value
    if isinstance(value, int):
        if -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER:
            return value
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _normalize_bytes(bytes(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return _format_timedelta(value)
    if isinstance(value, dict):
        return {str(key): normalize_value(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(normalize_value(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    return str(value)


def normalize_rows(rows: Any, max_rows: int) -> Tuple[Any, bool]:
    """Cap a raw result to ``max_rows`` and normalize every value.

    A ``max_rows`` of zero or less disables the cap. Non-list results (e.g. a
    driver status object) are normalized but never truncated.

    Returns:
        Tuple of (normalized rows, truncated flag).
    """
    if isinstance(rows, tuple):
        rows = list(rows)
    if isinstance(rows, list):
        truncated = max_rows > 0 and len(rows) > max_rows
        if truncated:
            rows = rows[:max_rows]
        return [normalize_value(row) for row in rows], truncated
    return normalize_value(rows), False


def _normalize_bytes(raw: bytes) -> Any:
    # BIT(n) columns arrive as short big-endian byte strings.
    if len(raw) == 1 and raw[0] in (0, 1):
        return raw[0]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.hex()


def _format_timedelta(value: timedelta) -> str:
    # MariaDB TIME columns arrive as timedelta and may exceed 24h or be negative.
    total_us = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    sign = "-" if total_us < 0 else ""
    seconds_total, micro = divmod(abs(total_us), 1_000_000)
    hours, remainder = divmod(seconds_total, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
    if micro:
        text += f".{micro:06d}"
    return text
