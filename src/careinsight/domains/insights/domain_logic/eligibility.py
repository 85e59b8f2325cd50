"""Insight eligibility: which catalog insights a patient may be shown.

An insight is eligible when its track item is active and selected by the
patient on at least one entry, and its question is a numeric or boolean
question of that track item.
"""

from __future__ import annotations

import logging

from careinsight.core.catalog.registry import InsightCatalog
from careinsight.core.storage.models import Question, TrackItem
from careinsight.core.storage.repository import TrackingRepository
from careinsight.domains.insights.domain_logic.errors import require_patient
from careinsight.domains.insights.domain_logic.insight_models import InsightTopic

logger = logging.getLogger(__name__)


def group_questions_by_item(
    items: list[TrackItem], questions: list[Question]
) -> dict[str, set[str]]:
    """Eligible question codes per track item code.

    Items without any matching question are left out.
    """
    codes_by_item_id: dict[int, set[str]] = {}
    for question in questions:
        codes_by_item_id.setdefault(question.track_item_id, set()).add(question.code)

    grouping: dict[str, set[str]] = {}
    for item in items:
        codes = codes_by_item_id.get(item.id)
        if codes:
            grouping.setdefault(item.code, set()).update(codes)
    return grouping


class InsightEligibilityResolver:
    """Filters the insight catalog down to what a patient can be shown.

    Usage::

        resolver = InsightEligibilityResolver(repository, catalog)
        topics = await resolver.resolve("42")
    """

    def __init__(self, repository: TrackingRepository, catalog: InsightCatalog) -> None:
        self._repo = repository
        self._catalog = catalog

    async def resolve(self, patient_id: int | str | None) -> list[InsightTopic]:
        """Eligible insights in catalog order.

        Raises:
            MissingPatientError: If no patient id is given.
            DataAccessError: If either query fails.
        """
        patient = require_patient(patient_id)
        items = await self._repo.get_selected_track_items(patient)
        if not items:
            logger.debug("Patient has no selected active track items")
            return []

        questions = await self._repo.get_insight_questions()
        grouping = group_questions_by_item(items, questions)

        topics = [
            InsightTopic(insight_name=entry.insight_name, insight_key=entry.insight_key)
            for entry in self._catalog
            if entry.question_code in grouping.get(entry.track_item_code, ())
        ]
        logger.debug(
            "%d of %d catalog insights eligible", len(topics), len(self._catalog)
        )
        return topics

    async def eligible_keys(self, patient_id: int | str | None) -> list[str]:
        """Keys of :meth:`resolve`, in catalog order."""
        return [topic.insight_key for topic in await self.resolve(patient_id)]
