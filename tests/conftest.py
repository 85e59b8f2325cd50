"""Shared test fixtures for CareInsight tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DB_PATH", ":memory:")
    monkeypatch.setenv("INSIGHTS_CATALOG_PATH", "")
    monkeypatch.setenv("INSIGHT_WINDOW_DAYS", "7")
    monkeypatch.setenv("INSIGHT_FAILURE_POLICY", "isolate")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from careinsight.core.catalog.models import InsightConfig  # noqa: E402
from careinsight.core.catalog.registry import InsightCatalog  # noqa: E402
from careinsight.core.storage.models import (  # noqa: E402
    Question,
    TrackItem,
    TrackItemEntry,
    TrackResponse,
)

PATIENT_ID = "42"
OTHER_PATIENT_ID = "7"


def make_test_catalog() -> InsightCatalog:
    """Catalog used across tests, in display order."""
    return InsightCatalog([
        InsightConfig(
            insight_key="rescue_medication_use",
            insight_name="Rescue Medication Use",
            track_item_code="medication",
            question_code="rescue_medication_count",
            topic="Rescue inhaler puffs",
            unit="puffs",
        ),
        InsightConfig(
            insight_key="symptom_free_days",
            insight_name="Symptom-Free Days",
            track_item_code="symptoms",
            question_code="symptom_free",
        ),
        InsightConfig(
            insight_key="night_waking",
            insight_name="Night Waking",
            track_item_code="sleep",
            question_code="night_wakings",
            unit="times",
        ),
        InsightConfig(
            insight_key="sleep_duration",
            insight_name="Sleep Duration",
            track_item_code="sleep",
            question_code="sleep_hours",
            unit="hours",
        ),
        InsightConfig(
            insight_key="exercise_minutes",
            insight_name="Exercise",
            track_item_code="exercise",
            question_code="exercise_minutes",
            unit="min",
        ),
        InsightConfig(
            insight_key="peak_flow",
            insight_name="Peak Flow",
            track_item_code="lung_function",
            question_code="peak_flow_reading",
            unit="L/min",
        ),
    ])


def seed_tracking_data(repo) -> None:
    """Seed items, questions, entries and responses.

    Patient 42 selected medication, symptoms, sleep and exercise (inactive);
    lung_function has an unselected entry. Sleep has no sleep_hours question.
    Eligible for patient 42: rescue_medication_use, symptom_free_days,
    night_waking.
    """
    repo.add_track_item(TrackItem(id=1, code="medication", name="Medication"))
    repo.add_track_item(TrackItem(id=2, code="symptoms", name="Symptoms"))
    repo.add_track_item(TrackItem(id=3, code="sleep", name="Sleep"))
    repo.add_track_item(TrackItem(id=4, code="exercise", name="Exercise", status="inactive"))
    repo.add_track_item(TrackItem(id=5, code="lung_function", name="Lung function"))

    repo.add_question(Question(id=1, code="rescue_medication_count", type="numeric", track_item_id=1))
    repo.add_question(Question(id=2, code="symptom_free", type="boolean", track_item_id=2))
    repo.add_question(Question(id=3, code="night_wakings", type="numeric", track_item_id=3))
    repo.add_question(Question(id=4, code="sleep_notes", type="text", track_item_id=3))
    repo.add_question(Question(id=5, code="exercise_minutes", type="numeric", track_item_id=4))
    repo.add_question(Question(id=6, code="peak_flow_reading", type="numeric", track_item_id=5))

    entries = [
        TrackItemEntry(id=101, patient_id=PATIENT_ID, track_item_id=1, date="03-01-2024", selected=True),
        TrackItemEntry(id=102, patient_id=PATIENT_ID, track_item_id=1, date="2024-03-05", selected=True),
        TrackItemEntry(id=103, patient_id=PATIENT_ID, track_item_id=2, date="03-06-2024", selected=True),
        TrackItemEntry(id=104, patient_id=PATIENT_ID, track_item_id=3, date="2024-03-07", selected=True),
        TrackItemEntry(id=105, patient_id=PATIENT_ID, track_item_id=4, date="2024-03-07", selected=True),
        TrackItemEntry(id=106, patient_id=PATIENT_ID, track_item_id=5, date="2024-03-07", selected=False),
        TrackItemEntry(id=201, patient_id=OTHER_PATIENT_ID, track_item_id=1, date="2024-03-07", selected=True),
    ]
    for entry in entries:
        repo.add_entry(entry)

    responses = [
        TrackResponse(id=1, patient_id=PATIENT_ID, question_id=1, track_item_entry_id=101, answer="2"),
        TrackResponse(id=2, patient_id=PATIENT_ID, question_id=1, track_item_entry_id=101, answer="5"),
        TrackResponse(id=3, patient_id=PATIENT_ID, question_id=1, track_item_entry_id=102, answer='"3"'),
        TrackResponse(id=4, patient_id=PATIENT_ID, question_id=2, track_item_entry_id=103, answer="true"),
        TrackResponse(id=5, patient_id=PATIENT_ID, question_id=3, track_item_entry_id=104, answer=2),
        TrackResponse(id=6, patient_id=PATIENT_ID, question_id=5, track_item_entry_id=105, answer="30"),
        TrackResponse(id=7, patient_id=PATIENT_ID, question_id=6, track_item_entry_id=106, answer="410"),
        TrackResponse(id=8, patient_id=OTHER_PATIENT_ID, question_id=1, track_item_entry_id=201, answer="9"),
    ]
    for response in responses:
        repo.add_response(response)


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tracking_db():
    """Create an in-memory TrackingDatabase for testing."""
    from careinsight.core.storage.database import TrackingDatabase

    db = TrackingDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def tracking_repository(tracking_db):
    """Create an empty TrackingRepository backed by in-memory SQLite."""
    from careinsight.core.storage.repository import TrackingRepository

    return TrackingRepository(tracking_db)


@pytest.fixture
def seeded_repository(tracking_repository):
    """TrackingRepository holding the standard seed data."""
    seed_tracking_data(tracking_repository)
    return tracking_repository


@pytest.fixture
def catalog() -> InsightCatalog:
    return make_test_catalog()
