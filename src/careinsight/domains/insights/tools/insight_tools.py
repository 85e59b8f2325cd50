"""MCP tools exposing the insight engine to presentation callers.

Each tool returns JSON. Engine errors are turned into an error payload the
caller can render (select a patient, retry, fix the date) instead of failing
the request.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable

from fastmcp import Context, FastMCP

from careinsight.core.storage.database import DataAccessError
from careinsight.domains.insights.domain_logic.errors import InvalidDateError, MissingPatientError
from careinsight.domains.insights.domain_logic.week_window import format_week_range

if TYPE_CHECKING:
    from careinsight.domains.insights.service import InsightsService

logger = logging.getLogger(__name__)


def _error_payload(error_type: str, message: str, *, retryable: bool) -> str:
    return json.dumps({
        "status": "error",
        "error_type": error_type,
        "message": message,
        "retryable": retryable,
    })


async def _respond(tool_name: str, call: Awaitable[Any], **extra: Any) -> str:
    """Await an engine call and wrap its result or error as JSON."""
    start_time = time.monotonic()
    try:
        data = await call
    except MissingPatientError as exc:
        return _error_payload("missing_patient", str(exc), retryable=False)
    except InvalidDateError as exc:
        return _error_payload("invalid_date", str(exc), retryable=False)
    except DataAccessError:
        logger.exception("%s failed to read tracking data", tool_name)
        return _error_payload(
            "data_access", "Could not load tracking data. Please try again.", retryable=True
        )

    elapsed_ms = (time.monotonic() - start_time) * 1000
    logger.info("%s completed in %.1fms", tool_name, elapsed_ms)
    return json.dumps({"status": "ok", **extra, "data": data})


def register_insight_tools(mcp: FastMCP, service: InsightsService) -> None:
    """Register insight tools on the MCP server."""

    @mcp.tool
    async def rescue_medication_chart(
        ctx: Context,
        patient_id: str,
        end_date: str,
    ) -> str:
        """Daily rescue medication use for the week ending on a date.

        Args:
            patient_id: The patient whose log is charted.
            end_date: Last day of the week (YYYY-MM-DD).
        """
        try:
            week_label = format_week_range(end_date, service.window_days)
        except InvalidDateError as exc:
            return _error_payload("invalid_date", str(exc), retryable=False)
        return await _respond(
            "rescue_medication_chart",
            service.get_rescue_medication_chart_data(patient_id, end_date),
            week=week_label,
        )

    @mcp.tool
    async def insight_topics(ctx: Context, patient_id: str) -> str:
        """List the insights available for a patient.

        Only insights backed by an active, selected track item with a numeric
        or boolean question are listed.

        Args:
            patient_id: The patient to check.
        """
        return await _respond("insight_topics", service.get_insight_topics(patient_id))

    @mcp.tool
    async def date_based_insight(
        ctx: Context,
        patient_id: str,
        selected_date: str,
        insight_key: str,
        question_code: str = "",
    ) -> str:
        """Time series of one insight for the week ending on a date.

        Args:
            patient_id: The patient whose log is charted.
            selected_date: Last day of the week (YYYY-MM-DD).
            insight_key: Key from insight_topics.
            question_code: Optional question code overriding the catalog's.
        """
        return await _respond(
            "date_based_insight",
            service.get_date_based_insights(
                patient_id=patient_id,
                selected_date=selected_date,
                insight_key=insight_key,
                question_code=question_code or None,
            ),
        )

    @mcp.tool
    async def all_date_based_insights(
        ctx: Context,
        patient_id: str,
        selected_date: str,
    ) -> str:
        """Every catalog insight for the week ending on a date.

        Includes insights the patient is not eligible for; those come back
        with an empty series.

        Args:
            patient_id: The patient whose log is charted.
            selected_date: Last day of the week (YYYY-MM-DD).
        """
        return await _respond(
            "all_date_based_insights",
            service.get_all_date_based_insights(patient_id, selected_date),
        )

    @mcp.tool
    async def eligible_date_based_insights(
        ctx: Context,
        patient_id: str,
        selected_date: str,
    ) -> str:
        """The patient's eligible insights for the week ending on a date.

        Args:
            patient_id: The patient whose log is charted.
            selected_date: Last day of the week (YYYY-MM-DD).
        """
        return await _respond(
            "eligible_date_based_insights",
            service.get_eligible_date_based_insights(patient_id, selected_date),
        )
