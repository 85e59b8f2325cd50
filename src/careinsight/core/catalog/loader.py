"""Insight catalog loader: reads YAML definitions from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from careinsight.core.catalog.models import InsightConfig
from careinsight.core.catalog.registry import InsightCatalog

logger = logging.getLogger(__name__)

# Catalog shipped with the package
DEFAULT_CATALOG_PATH = (
    Path(__file__).resolve().parent.parent.parent / "domains" / "insights" / "catalogs" / "insights.yaml"
)

_REQUIRED_FIELDS = ("insight_key", "insight_name", "track_item_code", "question_code")


class CatalogError(Exception):
    """Raised when the insight catalog cannot be loaded."""


def load_insight_catalog(path: str | Path | None = None) -> InsightCatalog:
    """Load the insight catalog from a YAML file.

    The file holds either a top-level list of entries or a mapping with an
    ``insights`` list. Entry order is preserved.

    Raises:
        CatalogError: If the file is missing, unreadable or malformed.
    """
    path = Path(path).expanduser() if path else DEFAULT_CATALOG_PATH
    if not path.is_file():
        raise CatalogError(f"Insight catalog not found: {path}")

    try:
        with open(path) as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise CatalogError(f"Invalid YAML in insight catalog {path}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("insights", [])
    if not isinstance(data, list):
        raise CatalogError(f"Insight catalog {path} must contain a list of insights")

    entries = [_parse_entry(item, index) for index, item in enumerate(data)]
    try:
        catalog = InsightCatalog(entries)
    except ValueError as exc:
        raise CatalogError(str(exc)) from exc

    logger.info("Loaded %d insights from %s", len(catalog), path)
    return catalog


def _parse_entry(item: Any, index: int) -> InsightConfig:
    """Parse one catalog mapping into an InsightConfig."""
    if not isinstance(item, dict):
        raise CatalogError(f"Catalog entry #{index} is not a mapping")

    missing = [name for name in _REQUIRED_FIELDS if not item.get(name)]
    if missing:
        raise CatalogError(f"Catalog entry #{index} is missing {', '.join(missing)}")

    unit = item.get("unit")
    return InsightConfig(
        insight_key=str(item["insight_key"]),
        insight_name=str(item["insight_name"]).strip(),
        track_item_code=str(item["track_item_code"]),
        question_code=str(item["question_code"]),
        topic=str(item.get("topic", "")).strip(),
        unit=str(unit) if unit else None,
    )
