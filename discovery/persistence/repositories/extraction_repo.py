"""Transcript extraction repository."""

import uuid
from typing import Any, Dict, List

import aiosqlite

from discovery.domain.models.extraction import Extraction


class ExtractionRepository:
    """Repository for stt_extractions rows."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def save(self, session_id: str, extraction: Extraction) -> str:
        """Persist one extraction tagged with its listening session.

        Returns:
            Generated row id
        """
        extraction_id = str(uuid.uuid4())
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO stt_extractions (
                    id, session_id, field, value, confidence,
                    category, quote, confirmed
                ) VALUES (?, ?, ?, ?, ?, ?, ?, 0)""",
                (
                    extraction_id,
                    session_id,
                    extraction.field.value,
                    extraction.value,
                    extraction.confidence.value,
                    extraction.category.value,
                    extraction.quote,
                ),
            )
            await db.commit()
        return extraction_id

    async def list_for_session(self, session_id: str) -> List[Dict[str, Any]]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """SELECT * FROM stt_extractions
                   WHERE session_id = ?
                   ORDER BY created_at ASC, rowid ASC""",
                (session_id,),
            )
            rows = await cursor.fetchall()
            return [
                {
                    "id": row["id"],
                    "session_id": row["session_id"],
                    "field": row["field"],
                    "value": row["value"],
                    "confidence": row["confidence"],
                    "category": row["category"],
                    "quote": row["quote"],
                    "confirmed": bool(row["confirmed"]),
                    "created_at": row["created_at"],
                }
                for row in rows
            ]
