"""Insights service: the operations presentation callers use.

Wires the series builder, eligibility resolver and aggregator around one
repository and one catalog. Results are returned as plain dicts shaped the
way the charts and tables consume them.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from careinsight.core.catalog.registry import InsightCatalog
from careinsight.core.config.settings import Settings
from careinsight.core.storage.repository import TrackingRepository
from careinsight.domains.insights.domain_logic.aggregator import FailurePolicy, InsightAggregator
from careinsight.domains.insights.domain_logic.eligibility import InsightEligibilityResolver
from careinsight.domains.insights.domain_logic.insight_models import (
    DEFAULT_WINDOW_DAYS,
    RESCUE_MEDICATION_QUESTION_ID,
)
from careinsight.domains.insights.domain_logic.series_builder import (
    SeriesBuilder,
    project_chart_points,
)

logger = logging.getLogger(__name__)


class InsightsService:
    """Facade over the insight derivation engine.

    Usage::

        service = InsightsService(repository, catalog)
        chart = await service.get_rescue_medication_chart_data("42", "2024-03-07")
        topics = await service.get_insight_topics("42")
    """

    def __init__(
        self,
        repository: TrackingRepository,
        catalog: InsightCatalog,
        *,
        window_days: int = DEFAULT_WINDOW_DAYS,
        rescue_medication_question_id: int = RESCUE_MEDICATION_QUESTION_ID,
        failure_policy: FailurePolicy = "isolate",
    ) -> None:
        self._catalog = catalog
        self._series_builder = SeriesBuilder(
            repository,
            window_days=window_days,
            default_question_id=rescue_medication_question_id,
        )
        self._resolver = InsightEligibilityResolver(repository, catalog)
        self._aggregator = InsightAggregator(
            repository,
            catalog,
            resolver=self._resolver,
            window_days=window_days,
            failure_policy=failure_policy,
        )

    @classmethod
    def from_settings(
        cls, repository: TrackingRepository, catalog: InsightCatalog, settings: Settings
    ) -> InsightsService:
        return cls(
            repository,
            catalog,
            window_days=settings.insight_window_days,
            rescue_medication_question_id=settings.rescue_medication_question_id,
            failure_policy=settings.insight_failure_policy,
        )

    @property
    def catalog(self) -> InsightCatalog:
        return self._catalog

    @property
    def window_days(self) -> int:
        return self._series_builder.window_days

    # ------------------------------------------------------------------
    # Rescue medication
    # ------------------------------------------------------------------

    async def get_rescue_medication_week_data(
        self, patient_id: int | str | None, end_date: str | date
    ) -> list[dict[str, Any]]:
        """Daily rescue medication counts, ``[{date, count}]``, oldest first."""
        series = await self._series_builder.build_daily_series(patient_id, end_date)
        return [datum.to_dict() for datum in series]

    async def get_rescue_medication_chart_data(
        self, patient_id: int | str | None, end_date: str | date
    ) -> list[dict[str, Any]]:
        """Chart points, ``[{value, label}]``, one per day of the week window."""
        series = await self._series_builder.build_daily_series(patient_id, end_date)
        return [point.to_dict() for point in project_chart_points(series)]

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    async def get_insight_topics(self, patient_id: int | str | None) -> list[dict[str, str]]:
        """Insights the patient is eligible for, ``[{insightName, insightKey}]``."""
        return [topic.to_dict() for topic in await self._resolver.resolve(patient_id)]

    async def get_date_based_insights(
        self,
        *,
        patient_id: int | str | None,
        selected_date: str | date,
        insight_key: str,
        question_code: str | None = None,
    ) -> dict[str, Any]:
        """One insight's series for the window ending at ``selected_date``."""
        result = await self._aggregator.get_date_based_insight(
            patient_id, selected_date, insight_key, question_code
        )
        return result.to_dict()

    async def get_all_date_based_insights(
        self, patient_id: int | str | None, selected_date: str | date
    ) -> list[dict[str, Any]]:
        """Every catalog insight, including ineligible and empty ones."""
        results = await self._aggregator.get_all_date_based_insights(patient_id, selected_date)
        return [result.to_dict() for result in results]

    async def get_eligible_date_based_insights(
        self, patient_id: int | str | None, selected_date: str | date
    ) -> list[dict[str, Any]]:
        """Only the insights returned by :meth:`get_insight_topics`."""
        results = await self._aggregator.get_eligible_date_based_insights(
            patient_id, selected_date
        )
        return [result.to_dict() for result in results]
