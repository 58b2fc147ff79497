"""Fallible field parsing for raw trip and lookup values.

Every parser returns a caller-supplied default instead of raising, so a
bad value becomes a sentinel that range checks can reject.
"""

from __future__ import annotations

from datetime import datetime, timezone
import math
import re
from typing import TypeVar

_DefaultT = TypeVar("_DefaultT")

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_FALLBACK_TIMESTAMP_FORMATS = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
)


def parse_float(value: object, default: _DefaultT) -> float | _DefaultT:
    """Parse a decimal number with thousands separators.

    The leading numeric prefix is used, so ``"12.5 mi"`` parses as 12.5.

    Args:
        value: Raw source value.
        default: Value returned for empty or unparseable input.

    Returns:
        Parsed float or the default.
    """
    text = _clean_numeric_text(value)
    if text is None:
        return default
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        return default
    parsed = float(match.group(1))
    if math.isnan(parsed):
        return default
    return parsed


def parse_int(value: object, default: _DefaultT) -> int | _DefaultT:
    """Parse the leading integer digits of a raw value.

    ``"3.7"`` parses as 3 and ``"1,024"`` as 1024.

    Args:
        value: Raw source value.
        default: Value returned for empty or unparseable input.

    Returns:
        Parsed integer or the default.
    """
    text = _clean_numeric_text(value)
    if text is None:
        return default
    match = _INT_PREFIX.match(text)
    if match is None:
        return default
    return int(match.group(1))


def parse_timestamp(value: object) -> datetime | None:
    """Parse a trip timestamp into a naive wall-clock datetime.

    ISO-8601 text (``T`` or space separated) is accepted first, then the
    US-style formats used by older TLC exports. Aware values are
    converted to UTC and made naive.

    Args:
        value: Raw timestamp value.

    Returns:
        Parsed datetime, or ``None`` when missing or unparseable.
    """
    if isinstance(value, datetime):
        return _as_naive(value)
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return _as_naive(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    for timestamp_format in _FALLBACK_TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, timestamp_format)
        except ValueError:
            continue
    return None


def clean_text(value: object) -> str:
    """Return a trimmed string, empty for missing values."""
    if value is None:
        return ""
    return str(value).strip()


def _clean_numeric_text(value: object) -> str | None:
    """Strip thousands separators and map empty input to ``None``."""
    if value is None:
        return None
    text = str(value).replace(",", "").strip()
    return text or None


def _as_naive(value: datetime) -> datetime:
    """Drop timezone info after normalizing to UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
