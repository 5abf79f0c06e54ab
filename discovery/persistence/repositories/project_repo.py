"""Project and decision-log repository."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiosqlite

from discovery.domain.models.project import Decision, Project

# Columns that may be written through update()
UPDATABLE_COLUMNS = {
    "name",
    "current_projects_month",
    "target_projects_month",
    "target_timeline_months",
    "ttd_current",
    "ttd_target",
    "budget_total",
    "margin_target",
    "strategic_notes",
}


class ProjectRepository:
    """Repository for the projects and decisions tables."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def create(self, project: Project) -> Project:
        data = project.model_dump()
        columns = ", ".join(data)
        placeholders = ", ".join("?" for _ in data)
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"INSERT INTO projects ({columns}) VALUES ({placeholders})",
                tuple(data.values()),
            )
            await db.commit()
        return project

    async def get_current(self) -> Optional[Project]:
        """The single tracked project (first by creation)."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("SELECT * FROM projects ORDER BY rowid LIMIT 1")
            row = await cursor.fetchone()
            if not row:
                return None
            return Project(**{k: row[k] for k in Project.model_fields})

    async def update(self, project_id: str, updates: Dict[str, Any]) -> None:
        unknown = set(updates) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Not updatable project fields: {sorted(unknown)}")
        if not updates:
            return
        assignments = ", ".join(f"{column} = ?" for column in updates)
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                f"UPDATE projects SET {assignments}, updated_at = datetime('now') "
                "WHERE id = ?",
                (*updates.values(), project_id),
            )
            await db.commit()

    async def add_decision(self, decision: Decision) -> Decision:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO decisions (
                    id, type, title, description, reasoning, made_by,
                    previous_state, new_state, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    decision.id,
                    decision.type,
                    decision.title,
                    decision.description,
                    decision.reasoning,
                    decision.made_by,
                    json.dumps(decision.previous_state)
                    if decision.previous_state is not None
                    else None,
                    json.dumps(decision.new_state)
                    if decision.new_state is not None
                    else None,
                    decision.created_at.isoformat(),
                ),
            )
            await db.commit()
        return decision

    async def list_decisions(self, limit: int = 20) -> List[Decision]:
        """Most recent decisions first."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM decisions ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (limit,),
            )
            rows = await cursor.fetchall()
            return [
                Decision(
                    id=row["id"],
                    type=row["type"],
                    title=row["title"],
                    description=row["description"],
                    reasoning=row["reasoning"],
                    made_by=row["made_by"],
                    previous_state=json.loads(row["previous_state"])
                    if row["previous_state"]
                    else None,
                    new_state=json.loads(row["new_state"]) if row["new_state"] else None,
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
                for row in rows
            ]
