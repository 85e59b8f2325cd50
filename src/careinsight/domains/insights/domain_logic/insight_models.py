"""Insight result models and domain constants."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

DEFAULT_WINDOW_DAYS = 7

# Question id of "rescue medication uses today" in the seeded question set
RESCUE_MEDICATION_QUESTION_ID = 1

UNKNOWN_INSIGHT_NAME = "Unknown Insight"

# Fixed English labels; strftime("%a") would follow the process locale
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DailyDatum:
    """Count for one calendar day."""

    date: str  # YYYY-MM-DD
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "count": self.count}


@dataclass(frozen=True)
class ChartPoint:
    """One chart point, ready for a line or bar chart."""

    value: float
    label: str
    unit: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"value": self.value, "label": self.label}
        if self.unit:
            data["unit"] = self.unit
        return data


@dataclass
class InsightSeries:
    """Points of one topic within an insight."""

    topic: str
    data: list[ChartPoint] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"topic": self.topic, "data": [point.to_dict() for point in self.data]}


@dataclass
class InsightResult:
    """Time-series data of one insight over a date range.

    An empty ``series`` means there is no data in the range. ``error`` is set
    when fetching the insight failed and the failure was isolated.
    """

    insight_key: str
    insight_name: str
    start_date: str
    end_date: str
    series: list[InsightSeries] = field(default_factory=list)
    error: str | None = None

    @property
    def has_data(self) -> bool:
        return bool(self.series)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "insightKey": self.insight_key,
            "insightName": self.insight_name,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "series": [series.to_dict() for series in self.series],
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class InsightTopic:
    """An insight the patient is eligible to see."""

    insight_name: str
    insight_key: str

    def to_dict(self) -> dict[str, str]:
        return {"insightName": self.insight_name, "insightKey": self.insight_key}
