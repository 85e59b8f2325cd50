"""Normalizers for loosely typed stored values.

These are the only functions that look at raw answers and raw entry dates.
Both are total: malformed input degrades instead of raising.
"""

from __future__ import annotations

import json
import math
import re
from datetime import date, datetime
from typing import Any, Callable

from careinsight.core.storage.models import ResponseRecord
from careinsight.domains.insights.domain_logic.errors import InvalidDateError

# M-D-YYYY / MM-DD-YYYY as written by the logging screens
_DISPLAY_DATE_RE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)")


def _decode_json(raw: Any) -> Any:
    """Decode JSON text; non-text values and undecodable text are returned as is.

    Raises:
        RecursionError: If the text nests too deeply to decode.
    """
    if not isinstance(raw, (str, bytes)):
        return raw
    try:
        return json.loads(raw)
    except (ValueError, TypeError):
        return raw


def parse_answer_count(raw: Any) -> int:
    """Interpret a stored answer as a non-negative integer count.

    Strings are decoded as JSON first (``'"3"'``, ``'4'``, ``'true'``) and
    used verbatim when that fails. Numbers are truncated toward zero, booleans
    count as 1/0, and text is read up to its first non-digit (``"5 puffs"``
    is 5). Anything else is 0, as is any negative result.
    """
    try:
        count = _coerce_count(_decode_json(raw))
    except (ValueError, TypeError, OverflowError, RecursionError):
        return 0
    return count if count > 0 else 0


def parse_answer_value(raw: Any) -> int | float:
    """Interpret a stored answer as a non-negative measurement.

    Same rules as :func:`parse_answer_count`, except that fractional values
    are kept (``"7.5"`` is 7.5).
    """
    try:
        value = _coerce_value(_decode_json(raw))
    except (ValueError, TypeError, OverflowError, RecursionError):
        return 0
    return value if value > 0 else 0


def _coerce_count(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return int(value)
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        return int(match.group(1)) if match else 0
    return 0


def _coerce_value(value: Any) -> int | float:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        match = _LEADING_NUMBER_RE.match(value)
        if not match:
            return 0
        text = match.group(1)
        value = float(text) if "." in text else int(text)
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return int(value) if value.is_integer() else value
    if isinstance(value, (bool, int)):
        return int(value)
    return 0


def normalize_date_key(value: str) -> str:
    """Canonicalize a logged date to ``YYYY-MM-DD``.

    ``MM-DD-YYYY`` (one or two digit month and day) is reordered and padded.
    Anything else, including canonical keys, is returned unchanged.
    """
    match = _DISPLAY_DATE_RE.match(value.strip())
    if not match:
        return value
    month, day, year = match.groups()
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def parse_iso_date(value: str | date) -> date:
    """Parse a caller supplied ``YYYY-MM-DD`` date.

    Raises:
        InvalidDateError: If the value is not an ISO calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip().split("T", 1)[0])
    except ValueError as exc:
        raise InvalidDateError(f"Invalid date {value!r}; expected YYYY-MM-DD") from exc


def decode_response(
    record: ResponseRecord,
    parse: Callable[[Any], int | float] = parse_answer_count,
) -> tuple[str, int | float]:
    """Turn a stored response into ``(date_key, value)`` using ``parse``."""
    return normalize_date_key(record.entry_date), parse(record.answer)
