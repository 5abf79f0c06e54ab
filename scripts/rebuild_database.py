#!/usr/bin/env python3
"""
Rebuild the database from scratch.

Deletes the existing database file, re-applies schema.sql and, with
--seed, loads config/backlog.yaml.

WARNING: This DELETES all answers, history and session records.

Usage:
    python scripts/rebuild_database.py [--seed]
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog

from discovery.core.config import settings
from discovery.persistence.database import init_database

log = structlog.get_logger(__name__)


async def rebuild_database(seed: bool = False) -> None:
    db_path = settings.database_path

    if not db_path.exists():
        log.info("database_not_found", path=str(db_path))
    else:
        file_size = db_path.stat().st_size
        log.warning(
            "deleting_database",
            path=str(db_path),
            size_kb=f"{file_size / 1024:.2f}",
        )
        db_path.unlink()
        for suffix in ("-wal", "-shm"):
            sidecar = db_path.with_name(db_path.name + suffix)
            if sidecar.exists():
                sidecar.unlink()

    await init_database()

    if seed:
        from seed_backlog import seed_backlog

        await seed_backlog(db_path)

    log.info("database_rebuilt", path=str(db_path), seeded=seed)


if __name__ == "__main__":
    asyncio.run(rebuild_database(seed="--seed" in sys.argv[1:]))
