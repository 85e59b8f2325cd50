"""CareInsight MCP server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from careinsight.core.catalog.loader import load_insight_catalog
from careinsight.core.catalog.registry import InsightCatalog
from careinsight.core.config.settings import get_settings
from careinsight.core.storage.database import TrackingDatabase
from careinsight.core.storage.repository import TrackingRepository
from careinsight.domains.insights.service import InsightsService
from careinsight.domains.insights.tools.insight_tools import register_insight_tools

logger = logging.getLogger(__name__)

SERVER_VERSION = "0.1.0"


def create_app(
    *,
    repository_override: TrackingRepository | None = None,
    catalog_override: InsightCatalog | None = None,
) -> FastMCP:
    """Create and configure the CareInsight MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the insight catalog (once, immutable)
    3. Opens the tracking record store
    4. Builds the insights service
    5. Registers all tools
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "CareInsight",
        instructions=(
            "Patient tracking insights. Derives daily, gap-filled time series "
            "from logged answers to tracked questions and lists the insights "
            "a patient is eligible to see."
        ),
    )

    # --- Insight catalog ---
    if catalog_override is not None:
        catalog = catalog_override
    else:
        catalog = load_insight_catalog(settings.insights_catalog_path or None)

    # --- Tracking record store ---
    if repository_override is not None:
        repository = repository_override
    else:
        tracking_db = TrackingDatabase(settings.db_path)
        tracking_db.initialize()
        repository = TrackingRepository(tracking_db)
        logger.info(
            "Tracking store opened: %s (schema v%d)",
            settings.db_path,
            tracking_db.get_schema_version(),
        )

    service = InsightsService.from_settings(repository, catalog, settings)

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "CareInsight",
            "version": SERVER_VERSION,
            "insights_in_catalog": len(catalog),
            "window_days": settings.insight_window_days,
            "insight_failure_policy": settings.insight_failure_policy,
        }

    register_insight_tools(server, service)
    logger.info("Insight tools registered (%d catalog insights)", len(catalog))

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
