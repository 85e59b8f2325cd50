"""Tracking repository: typed reads over the patient tracking record store.

Every read acquires a query session for its duration and converts the
returned rows into typed records before handing them to the insight engine.
The write helpers exist for seeding and fixtures; the engine never calls them.
"""

from __future__ import annotations

import logging
from typing import Any

from careinsight.core.storage.database import TrackingDatabase
from careinsight.core.storage.models import (
    ACTIVE_STATUS,
    INSIGHT_QUESTION_TYPES,
    Question,
    ResponseRecord,
    TrackItem,
    TrackItemEntry,
    TrackResponse,
)

logger = logging.getLogger(__name__)

_RESPONSES_BY_QUESTION_ID = """
    SELECT tr.id, tie.date, tr.answer, q.type
    FROM track_response tr
    INNER JOIN track_item_entry tie ON tr.track_item_entry_id = tie.id
    INNER JOIN question q ON tr.question_id = q.id
    WHERE tr.patient_id = ? AND tr.question_id = ?
    ORDER BY tie.date ASC, tr.id ASC
"""

_RESPONSES_BY_QUESTION_CODE = """
    SELECT tr.id, tie.date, tr.answer, q.type
    FROM track_response tr
    INNER JOIN track_item_entry tie ON tr.track_item_entry_id = tie.id
    INNER JOIN question q ON tr.question_id = q.id
    INNER JOIN track_item ti ON q.track_item_id = ti.id
    WHERE tr.patient_id = ? AND q.code = ?
"""

_SELECTED_ACTIVE_ITEMS = """
    SELECT DISTINCT ti.id, ti.code, ti.name, ti.status
    FROM track_item ti
    INNER JOIN track_item_entry tie ON tie.track_item_id = ti.id
    WHERE tie.patient_id = ? AND tie.selected = 1 AND ti.status = ?
    ORDER BY ti.id ASC
"""


class TrackingRepository:
    """Repository for track items, questions, entries and responses.

    Usage::

        db = TrackingDatabase(":memory:")
        db.initialize()
        repo = TrackingRepository(db)

        records = await repo.get_question_responses("42", question_id=1)
        items = await repo.get_selected_track_items("42")
    """

    def __init__(self, database: TrackingDatabase) -> None:
        self._db = database

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def get_question_responses(
        self, patient_id: int | str, question_id: int
    ) -> list[ResponseRecord]:
        """All responses of a patient to one question, oldest entry first."""
        async with self._db.session() as session:
            rows = await session.run_query(
                _RESPONSES_BY_QUESTION_ID, (str(patient_id), question_id)
            )
        return self._rows_to_responses(rows)

    async def get_question_responses_by_code(
        self,
        patient_id: int | str,
        question_code: str,
        *,
        track_item_code: str | None = None,
    ) -> list[ResponseRecord]:
        """All responses of a patient to the question(s) with a given code.

        Args:
            patient_id: Patient identifier.
            question_code: Question code (codes are unique per track item).
            track_item_code: Restrict to questions of this track item.
        """
        query = _RESPONSES_BY_QUESTION_CODE
        params: list[Any] = [str(patient_id), question_code]
        if track_item_code:
            query += " AND ti.code = ?"
            params.append(track_item_code)
        query += " ORDER BY tie.date ASC, tr.id ASC"

        async with self._db.session() as session:
            rows = await session.run_query(query, params)
        return self._rows_to_responses(rows)

    # ------------------------------------------------------------------
    # Track items and questions
    # ------------------------------------------------------------------

    async def get_selected_track_items(self, patient_id: int | str) -> list[TrackItem]:
        """Active track items the patient selected on at least one entry."""
        async with self._db.session() as session:
            rows = await session.run_query(
                _SELECTED_ACTIVE_ITEMS, (str(patient_id), ACTIVE_STATUS)
            )
        return [
            TrackItem(
                id=int(row["id"]),
                code=str(row["code"]),
                name=row["name"] or "",
                status=row["status"],
            )
            for row in rows
        ]

    async def get_insight_questions(self) -> list[Question]:
        """All questions, system-wide, whose type can back an insight."""
        placeholders = ",".join("?" for _ in INSIGHT_QUESTION_TYPES)
        async with self._db.session() as session:
            rows = await session.run_query(
                f"""SELECT id, code, type, track_item_id, text FROM question
                    WHERE type IN ({placeholders}) ORDER BY id ASC""",
                INSIGHT_QUESTION_TYPES,
            )
        return [
            Question(
                id=int(row["id"]),
                code=str(row["code"]),
                type=row["type"],
                track_item_id=int(row["track_item_id"]),
                text=row["text"] or "",
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Writes (seeding)
    # ------------------------------------------------------------------

    def add_track_item(self, item: TrackItem) -> int:
        conn = self._db.connection
        cursor = conn.execute(
            "INSERT INTO track_item (id, code, name, status) VALUES (?, ?, ?, ?)",
            (item.id, item.code, item.name, item.status),
        )
        conn.commit()
        return cursor.lastrowid

    def add_question(self, question: Question) -> int:
        conn = self._db.connection
        cursor = conn.execute(
            "INSERT INTO question (id, code, text, type, track_item_id) VALUES (?, ?, ?, ?, ?)",
            (question.id, question.code, question.text, question.type, question.track_item_id),
        )
        conn.commit()
        return cursor.lastrowid

    def add_entry(self, entry: TrackItemEntry) -> int:
        conn = self._db.connection
        cursor = conn.execute(
            """INSERT INTO track_item_entry (id, patient_id, track_item_id, date, selected)
               VALUES (?, ?, ?, ?, ?)""",
            (
                entry.id,
                str(entry.patient_id),
                entry.track_item_id,
                entry.date,
                int(entry.selected),
            ),
        )
        conn.commit()
        return cursor.lastrowid

    def add_response(self, response: TrackResponse) -> int:
        conn = self._db.connection
        cursor = conn.execute(
            """INSERT INTO track_response (id, patient_id, question_id, track_item_entry_id, answer)
               VALUES (?, ?, ?, ?, ?)""",
            (
                response.id,
                str(response.patient_id),
                response.question_id,
                response.track_item_entry_id,
                response.answer,
            ),
        )
        conn.commit()
        return cursor.lastrowid

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _rows_to_responses(rows: list[Any]) -> list[ResponseRecord]:
        """Convert joined response rows to typed records.

        Rows without a usable entry date cannot be placed on a day and are
        skipped.
        """
        records: list[ResponseRecord] = []
        for row in rows:
            entry_date = row[1]
            if not isinstance(entry_date, str) or not entry_date.strip():
                logger.debug("Skipping response %s without entry date", row[0])
                continue
            records.append(
                ResponseRecord(
                    response_id=int(row[0]),
                    entry_date=entry_date.strip(),
                    answer=row[2],
                    question_type=row[3] or "",
                )
            )
        return records
