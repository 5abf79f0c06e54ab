"""Discovery question repository."""

import json
from datetime import datetime
from typing import List, Optional

import aiosqlite

from discovery.domain.models.question import Question


class QuestionRepository:
    """Repository for discovery_questions rows."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def create(self, question: Question) -> Question:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO discovery_questions (
                    id, category, text, priority, answered, answer,
                    answered_by, answered_at, mentioned_users, sort_order
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    question.id,
                    question.category,
                    question.text,
                    question.priority.value,
                    int(question.answered),
                    question.answer,
                    question.answered_by,
                    question.answered_at.isoformat() if question.answered_at else None,
                    json.dumps(question.mentioned_users),
                    question.sort_order,
                ),
            )
            await db.commit()
        return question

    async def get(self, question_id: str) -> Optional[Question]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM discovery_questions WHERE id = ?", (question_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_question(row) if row else None

    async def list_all(self) -> List[Question]:
        """All questions in backlog order."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM discovery_questions ORDER BY sort_order ASC, id ASC"
            )
            rows = await cursor.fetchall()
            return [self._row_to_question(row) for row in rows]

    async def save_answer(self, question: Question) -> None:
        """Write the answer fields of question (answered or cleared)."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """UPDATE discovery_questions SET
                    answered = ?, answer = ?, answered_by = ?,
                    answered_at = ?, mentioned_users = ?
                   WHERE id = ?""",
                (
                    int(question.answered),
                    question.answer,
                    question.answered_by,
                    question.answered_at.isoformat() if question.answered_at else None,
                    json.dumps(question.mentioned_users),
                    question.id,
                ),
            )
            await db.commit()
            if cursor.rowcount == 0:
                raise LookupError(f"Question {question.id} not found in store")

    def _row_to_question(self, row: aiosqlite.Row) -> Question:
        return Question(
            id=row["id"],
            category=row["category"],
            text=row["text"],
            priority=row["priority"],
            answered=bool(row["answered"]),
            answer=row["answer"],
            answered_by=row["answered_by"],
            answered_at=datetime.fromisoformat(row["answered_at"])
            if row["answered_at"]
            else None,
            mentioned_users=json.loads(row["mentioned_users"])
            if row["mentioned_users"]
            else [],
            sort_order=row["sort_order"],
        )
