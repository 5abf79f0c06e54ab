"""Answer history repository (append-only)."""

import json
from datetime import datetime
from typing import List

import aiosqlite

from discovery.domain.models.question import AnswerHistoryEntry


class AnswerHistoryRepository:
    """Repository for answer_history rows. Rows are never updated or deleted."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def append(self, entry: AnswerHistoryEntry) -> AnswerHistoryEntry:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO answer_history (
                    id, question_id, answer, answered_by,
                    mentioned_users, source, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    entry.id,
                    entry.question_id,
                    entry.answer,
                    entry.answered_by,
                    json.dumps(entry.mentioned_users),
                    entry.source.value,
                    entry.created_at.isoformat(),
                ),
            )
            await db.commit()
        return entry

    async def list_for_question(self, question_id: str) -> List[AnswerHistoryEntry]:
        """Entries for one question, newest first."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """SELECT * FROM answer_history
                   WHERE question_id = ?
                   ORDER BY created_at DESC, rowid DESC""",
                (question_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    async def list_all(self) -> List[AnswerHistoryEntry]:
        """Full timeline, newest first."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM answer_history ORDER BY created_at DESC, rowid DESC"
            )
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    def _row_to_entry(self, row: aiosqlite.Row) -> AnswerHistoryEntry:
        return AnswerHistoryEntry(
            id=row["id"],
            question_id=row["question_id"],
            answer=row["answer"],
            answered_by=row["answered_by"],
            mentioned_users=json.loads(row["mentioned_users"])
            if row["mentioned_users"]
            else [],
            source=row["source"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
