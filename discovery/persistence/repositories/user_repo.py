"""Roster repository."""

from typing import List, Optional

import aiosqlite

from discovery.domain.models.user import User


class UserRepository:
    """Repository for users rows (read-mostly)."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def create(self, user: User) -> User:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT INTO users (id, name, role, market_focus) VALUES (?, ?, ?, ?)",
                (user.id, user.name, user.role.value, user.market_focus),
            )
            await db.commit()
        return user

    async def get(self, user_id: str) -> Optional[User]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = await cursor.fetchone()
            return self._row_to_user(row) if row else None

    async def list_all(self) -> List[User]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("SELECT * FROM users ORDER BY name ASC")
            rows = await cursor.fetchall()
            return [self._row_to_user(row) for row in rows]

    def _row_to_user(self, row: aiosqlite.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            role=row["role"],
            market_focus=row["market_focus"],
        )
