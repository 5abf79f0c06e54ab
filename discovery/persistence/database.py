"""
SQLite record store setup.

The whole schema lives in schema.sql and is applied idempotently at startup.
Repositories open their own short-lived aiosqlite connections, so this
module only initializes the file and reports its health.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import aiosqlite
import structlog

from discovery.core.config import settings

log = structlog.get_logger(__name__)

SCHEMA_FILE = Path(__file__).parent / "schema.sql"

# Tables the services read and write; a store missing any of them is unusable
REQUIRED_TABLES = (
    "users",
    "projects",
    "discovery_questions",
    "answer_history",
    "stt_sessions",
    "stt_extractions",
    "decisions",
)


async def init_database(db_path: Optional[Path] = None) -> None:
    """
    Create the database file if needed and apply schema.sql.

    Existing rows are never touched.

    Raises:
        FileNotFoundError: schema.sql is missing from the package
    """
    db_path = Path(db_path or settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    if not SCHEMA_FILE.exists():
        log.error("schema_file_not_found", path=str(SCHEMA_FILE))
        raise FileNotFoundError(f"Schema file not found: {SCHEMA_FILE}")

    async with aiosqlite.connect(db_path) as db:
        # WAL lets the health check read while a flush is writing
        await db.execute("PRAGMA journal_mode = WAL")
        await db.executescript(SCHEMA_FILE.read_text())
        await db.commit()

    log.info("database_initialized", path=str(db_path))


async def check_database_health() -> Dict[str, Any]:
    """
    Report whether the store is usable, with backlog and session counts.

    Returns:
        {"status": "healthy", "question_count", "answered_count",
        "active_sessions", "path"} or {"status": "unhealthy", "error", ...}
    """
    path = str(settings.database_path)
    try:
        async with aiosqlite.connect(settings.database_path) as db:
            cursor = await db.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            )
            tables = {row[0] for row in await cursor.fetchall()}
            missing = [t for t in REQUIRED_TABLES if t not in tables]
            if missing:
                return {"status": "unhealthy", "missing_tables": missing, "path": path}

            cursor = await db.execute(
                "SELECT COUNT(*), COALESCE(SUM(answered), 0) FROM discovery_questions"
            )
            question_count, answered_count = await cursor.fetchone()
            cursor = await db.execute(
                "SELECT COUNT(*) FROM stt_sessions WHERE status = 'active'"
            )
            (active_sessions,) = await cursor.fetchone()
    except aiosqlite.Error as e:
        log.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e), "path": path}

    return {
        "status": "healthy",
        "question_count": question_count,
        "answered_count": answered_count,
        "active_sessions": active_sessions,
        "path": path,
    }
