"""Listening session repository."""

from datetime import datetime, timezone
from typing import Optional

import aiosqlite

from discovery.domain.models.session import ListeningSession, SessionStatus


class ListeningSessionRepository:
    """Repository for stt_sessions rows."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def create(self, session: ListeningSession) -> ListeningSession:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO stt_sessions (
                    id, project_id, started_by, status, started_at,
                    transcript_count, extraction_count
                ) VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    session.id,
                    session.project_id,
                    session.started_by,
                    session.status.value,
                    session.started_at.isoformat(),
                    session.transcript_count,
                    session.extraction_count,
                ),
            )
            await db.commit()
        return session

    async def close(
        self, session_id: str, transcript_count: int, extraction_count: int
    ) -> None:
        """Mark a session completed with its summary counts."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """UPDATE stt_sessions SET
                    status = ?, ended_at = ?,
                    transcript_count = ?, extraction_count = ?
                   WHERE id = ?""",
                (
                    SessionStatus.COMPLETED.value,
                    datetime.now(timezone.utc).isoformat(),
                    transcript_count,
                    extraction_count,
                    session_id,
                ),
            )
            await db.commit()

    async def get(self, session_id: str) -> Optional[ListeningSession]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM stt_sessions WHERE id = ?", (session_id,)
            )
            row = await cursor.fetchone()
            if not row:
                return None
            return ListeningSession(
                id=row["id"],
                project_id=row["project_id"],
                started_by=row["started_by"],
                status=row["status"],
                started_at=datetime.fromisoformat(row["started_at"]),
                ended_at=datetime.fromisoformat(row["ended_at"])
                if row["ended_at"]
                else None,
                transcript_count=row["transcript_count"],
                extraction_count=row["extraction_count"],
            )
