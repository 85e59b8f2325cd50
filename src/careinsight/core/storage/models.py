"""Data models for the tracking record store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

ACTIVE_STATUS = "active"

# Question types that can back an insight
INSIGHT_QUESTION_TYPES = ("numeric", "boolean")


@dataclass
class TrackItem:
    """A trackable category (e.g. exercise, medication)."""

    id: int | None
    code: str
    name: str = ""
    status: str = ACTIVE_STATUS  # 'active' or anything else (inactive)

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE_STATUS


@dataclass
class Question:
    """A question asked under exactly one track item."""

    id: int | None
    code: str
    type: str  # 'numeric', 'boolean', 'text', ...
    track_item_id: int
    text: str = ""


@dataclass
class TrackItemEntry:
    """A patient's per-day selection record for a track item."""

    id: int | None
    patient_id: str
    track_item_id: int
    date: str  # MM-DD-YYYY or YYYY-MM-DD, as logged
    selected: bool = False


@dataclass
class TrackResponse:
    """A single logged answer."""

    id: int | None
    patient_id: str
    question_id: int
    track_item_entry_id: int
    answer: Any = None  # raw: JSON text, plain text, or number


@dataclass(frozen=True)
class ResponseRecord:
    """A response joined to its entry date, as returned by read queries.

    ``answer`` is left raw; it is interpreted only by the answer normalizer.
    """

    response_id: int
    entry_date: str
    answer: Any
    question_type: str = ""
