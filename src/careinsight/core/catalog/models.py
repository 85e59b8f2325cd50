"""Data models for the insight catalog."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class InsightConfig:
    """One catalog entry: a named insight backed by one track item question."""

    insight_key: str
    insight_name: str
    track_item_code: str
    question_code: str
    topic: str = ""
    unit: str | None = None

    @property
    def series_topic(self) -> str:
        """Topic shown for this insight's series; falls back to the name."""
        return self.topic or self.insight_name
