"""Multi-insight aggregation: date-based series for one or many insights.

Failure isolation contract:

* ``isolate`` (default): when fetching one insight raises DataAccessError, that
  insight is still returned, with an empty series and ``error`` set. The other
  insights are unaffected.
* ``fail_fast``: the first DataAccessError propagates and the call fails.

Missing patient and invalid dates are call-level errors under both policies.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Literal

from careinsight.core.catalog.registry import InsightCatalog
from careinsight.core.storage.database import DataAccessError
from careinsight.core.storage.repository import TrackingRepository
from careinsight.domains.insights.domain_logic.eligibility import InsightEligibilityResolver
from careinsight.domains.insights.domain_logic.errors import require_patient
from careinsight.domains.insights.domain_logic.insight_models import (
    DEFAULT_WINDOW_DAYS,
    UNKNOWN_INSIGHT_NAME,
    InsightResult,
    InsightSeries,
)
from careinsight.domains.insights.domain_logic.series_builder import (
    daily_values,
    project_window_values,
)
from careinsight.domains.insights.domain_logic.week_window import window_dates

logger = logging.getLogger(__name__)

FailurePolicy = Literal["isolate", "fail_fast"]


class InsightAggregator:
    """Assembles InsightResults from the catalog and the patient's responses.

    Usage::

        aggregator = InsightAggregator(repository, catalog)
        results = await aggregator.get_all_date_based_insights("42", "2024-03-07")
    """

    def __init__(
        self,
        repository: TrackingRepository,
        catalog: InsightCatalog,
        *,
        resolver: InsightEligibilityResolver | None = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
        failure_policy: FailurePolicy = "isolate",
    ) -> None:
        if failure_policy not in ("isolate", "fail_fast"):
            raise ValueError(f"Unknown failure policy: {failure_policy!r}")
        self._repo = repository
        self._catalog = catalog
        self._resolver = resolver or InsightEligibilityResolver(repository, catalog)
        self._window_days = window_days
        self._failure_policy = failure_policy

    # ------------------------------------------------------------------
    # Single insight
    # ------------------------------------------------------------------

    async def get_date_based_insight(
        self,
        patient_id: int | str | None,
        selected_date: str | date,
        insight_key: str,
        question_code: str | None = None,
    ) -> InsightResult:
        """Series of one insight for the window ending at ``selected_date``.

        Args:
            patient_id: Patient identifier (required).
            selected_date: Last day of the window, ``YYYY-MM-DD``.
            insight_key: Catalog key. Unknown keys are named "Unknown Insight".
            question_code: Overrides the catalog's question code.

        Raises:
            MissingPatientError: If no patient id is given.
            InvalidDateError: If ``selected_date`` is not an ISO date.
            DataAccessError: If the underlying query fails.
        """
        patient = require_patient(patient_id)
        days = window_dates(selected_date, self._window_days)
        result = self._empty_result(insight_key, days)

        entry = self._catalog.get(insight_key)
        code = question_code or (entry.question_code if entry else None)
        if not code:
            logger.debug("No question code for insight %s", insight_key)
            return result

        # The track item restriction applies only to the catalog's own question
        track_item_code = entry.track_item_code if entry and code == entry.question_code else None
        records = await self._repo.get_question_responses_by_code(
            patient, code, track_item_code=track_item_code
        )
        values = daily_values(records)
        if not any(day.isoformat() in values for day in days):
            return result

        unit = entry.unit if entry else None
        topic = entry.series_topic if entry else insight_key
        points = project_window_values(values, days[-1], self._window_days, unit=unit)
        result.series.append(InsightSeries(topic=topic, data=points))
        return result

    # ------------------------------------------------------------------
    # Many insights
    # ------------------------------------------------------------------

    async def get_all_date_based_insights(
        self, patient_id: int | str | None, selected_date: str | date
    ) -> list[InsightResult]:
        """One result per catalog insight, eligible or not, in catalog order."""
        return await self.collect(patient_id, selected_date, self._catalog.keys())

    async def get_eligible_date_based_insights(
        self, patient_id: int | str | None, selected_date: str | date
    ) -> list[InsightResult]:
        """One result per insight the patient is eligible for, in catalog order.

        Eligibility lookup failures are not isolated; they fail the call.
        """
        patient = require_patient(patient_id)
        window_dates(selected_date, self._window_days)
        keys = await self._resolver.eligible_keys(patient)
        return await self.collect(patient, selected_date, keys)

    async def collect(
        self,
        patient_id: int | str | None,
        selected_date: str | date,
        insight_keys: list[str],
    ) -> list[InsightResult]:
        """Fetch each key in order; every key appears in the output."""
        patient = require_patient(patient_id)
        days = window_dates(selected_date, self._window_days)

        results: list[InsightResult] = []
        failures = 0
        for key in insight_keys:
            try:
                results.append(await self.get_date_based_insight(patient, selected_date, key))
            except DataAccessError as exc:
                if self._failure_policy == "fail_fast":
                    raise
                failures += 1
                logger.warning("Failed to fetch insight %s: %s", key, exc)
                results.append(self._empty_result(key, days, error=str(exc)))

        if failures:
            logger.warning("%d of %d insights failed", failures, len(insight_keys))
        logger.debug(
            "%d of %d insights have data in the window",
            sum(1 for result in results if result.has_data),
            len(results),
        )
        return results

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _empty_result(
        self, insight_key: str, days: list[date], *, error: str | None = None
    ) -> InsightResult:
        entry = self._catalog.get(insight_key)
        return InsightResult(
            insight_key=insight_key,
            insight_name=entry.insight_name if entry else UNKNOWN_INSIGHT_NAME,
            start_date=days[0].isoformat(),
            end_date=days[-1].isoformat(),
            error=error,
        )
