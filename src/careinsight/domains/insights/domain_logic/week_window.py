"""Calendar window helpers for weekly insight views."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Literal

from careinsight.domains.insights.domain_logic.insight_models import (
    DEFAULT_WINDOW_DAYS,
    WEEKDAY_LABELS,
)
from careinsight.domains.insights.domain_logic.normalizers import parse_iso_date

_MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def window_dates(end_date: str | date, days: int = DEFAULT_WINDOW_DAYS) -> list[date]:
    """Contiguous ascending dates of a window ending at ``end_date`` (inclusive)."""
    if days < 1:
        raise ValueError(f"Window must span at least one day, got {days}")
    end = parse_iso_date(end_date)
    return [end - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def weekday_label(day: str | date) -> str:
    """Short English weekday name, e.g. ``Mon``."""
    return WEEKDAY_LABELS[parse_iso_date(day).weekday()]


def shift_week(end_date: str | date, direction: Literal["prev", "next"]) -> str:
    """End date of the previous or next week window."""
    end = parse_iso_date(end_date)
    if direction == "prev":
        return (end - timedelta(days=7)).isoformat()
    if direction == "next":
        return (end + timedelta(days=7)).isoformat()
    raise ValueError(f"direction must be 'prev' or 'next', got {direction!r}")


def format_week_range(end_date: str | date, days: int = DEFAULT_WINDOW_DAYS) -> str:
    """Human label of a window, e.g. ``Mar 1 - 7, 2024``.

    Month and year are repeated only when the window crosses them.
    """
    dates = window_dates(end_date, days)
    start, end = dates[0], dates[-1]
    start_month = _MONTH_ABBR[start.month - 1]
    end_month = _MONTH_ABBR[end.month - 1]

    if start.year != end.year:
        return f"{start_month} {start.day}, {start.year} - {end_month} {end.day}, {end.year}"
    if start.month != end.month:
        return f"{start_month} {start.day} - {end_month} {end.day}, {end.year}"
    return f"{start_month} {start.day} - {end.day}, {end.year}"
