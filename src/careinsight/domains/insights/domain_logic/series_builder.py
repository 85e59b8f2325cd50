"""Daily series construction from logged responses.

Turns irregular responses into a dense, gap-filled daily series over a fixed
window, and projects it into chart points.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Iterable

from careinsight.core.storage.models import ResponseRecord
from careinsight.core.storage.repository import TrackingRepository
from careinsight.domains.insights.domain_logic.week_window import weekday_label, window_dates
from careinsight.domains.insights.domain_logic.errors import require_patient
from careinsight.domains.insights.domain_logic.insight_models import (
    DEFAULT_WINDOW_DAYS,
    RESCUE_MEDICATION_QUESTION_ID,
    ChartPoint,
    DailyDatum,
)
from careinsight.domains.insights.domain_logic.normalizers import (
    decode_response,
    parse_answer_count,
    parse_answer_value,
)

logger = logging.getLogger(__name__)


def _latest_per_day(
    records: Iterable[ResponseRecord], parse: Callable[[Any], int | float]
) -> dict[str, int | float]:
    """Map canonical date key to the value of the last logged response that day.

    Records are ordered by canonical date, then response id, so a day stored
    as both MM-DD-YYYY and YYYY-MM-DD resolves to the latest response.
    """
    decoded = sorted(
        ((decode_response(record, parse), record.response_id) for record in records),
        key=lambda item: (item[0][0], item[1]),
    )
    values: dict[str, int | float] = {}
    for (date_key, value), _ in decoded:
        values[date_key] = value
    return values


def daily_counts(records: Iterable[ResponseRecord]) -> dict[str, int]:
    """Map canonical date key to count; a later response for a date replaces earlier ones."""
    return _latest_per_day(records, parse_answer_count)


def daily_values(records: Iterable[ResponseRecord]) -> dict[str, int | float]:
    """Like :func:`daily_counts`, keeping fractional measurements."""
    return _latest_per_day(records, parse_answer_value)


def densify(
    counts: dict[str, int],
    end_date: str | date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> list[DailyDatum]:
    """One DailyDatum per day of the window, missing days as 0."""
    return [
        DailyDatum(date=key, count=counts.get(key, 0))
        for key in (day.isoformat() for day in window_dates(end_date, window_days))
    ]


def project_window_values(
    values: dict[str, int | float],
    end_date: str | date,
    window_days: int = DEFAULT_WINDOW_DAYS,
    unit: str | None = None,
) -> list[ChartPoint]:
    """One chart point per day of the window, missing days as 0."""
    return [
        ChartPoint(value=values.get(day.isoformat(), 0), label=weekday_label(day), unit=unit)
        for day in window_dates(end_date, window_days)
    ]


def project_chart_points(
    series: Iterable[DailyDatum], unit: str | None = None
) -> list[ChartPoint]:
    """Daily series to chart points labelled with the short weekday."""
    return [
        ChartPoint(value=datum.count, label=weekday_label(datum.date), unit=unit)
        for datum in series
    ]


class SeriesBuilder:
    """Builds gap-filled daily series for one question of one patient.

    Usage::

        builder = SeriesBuilder(repository)
        week = await builder.build_daily_series("42", "2024-03-07")
    """

    def __init__(
        self,
        repository: TrackingRepository,
        *,
        window_days: int = DEFAULT_WINDOW_DAYS,
        default_question_id: int = RESCUE_MEDICATION_QUESTION_ID,
    ) -> None:
        self._repo = repository
        self._window_days = window_days
        self._default_question_id = default_question_id

    @property
    def window_days(self) -> int:
        return self._window_days

    async def build_daily_series(
        self,
        patient_id: int | str | None,
        end_date: str | date,
        *,
        question_id: int | None = None,
    ) -> list[DailyDatum]:
        """Daily counts for the window ending at ``end_date``.

        Args:
            patient_id: Patient identifier (required).
            end_date: Last day of the window, ``YYYY-MM-DD``.
            question_id: Question to read; defaults to rescue medication.

        Raises:
            MissingPatientError: If no patient id is given.
            InvalidDateError: If ``end_date`` is not an ISO date.
            DataAccessError: If the underlying query fails.
        """
        patient = require_patient(patient_id)
        # Validate before touching storage
        window_dates(end_date, self._window_days)

        qid = self._default_question_id if question_id is None else question_id
        records = await self._repo.get_question_responses(patient, qid)
        series = densify(daily_counts(records), end_date, self._window_days)
        logger.debug(
            "Built %d-day series for question %s from %d responses",
            len(series), qid, len(records),
        )
        return series

    async def build_chart_points(
        self,
        patient_id: int | str | None,
        end_date: str | date,
        *,
        question_id: int | None = None,
    ) -> list[ChartPoint]:
        """Chart-ready points of :meth:`build_daily_series`."""
        series = await self.build_daily_series(patient_id, end_date, question_id=question_id)
        return project_chart_points(series)
