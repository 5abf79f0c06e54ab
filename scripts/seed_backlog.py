#!/usr/bin/env python3
"""
Insert the seed backlog (project, roster, questions) into the database.

Rows whose id already exists are skipped, so the script can be re-run.

Usage:
    python scripts/seed_backlog.py [path/to/backlog.yaml]
"""

import asyncio
import sqlite3
import sys
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog

from discovery.core.backlog_loader import load_backlog
from discovery.core.config import settings
from discovery.persistence.database import init_database
from discovery.persistence.repositories.project_repo import ProjectRepository
from discovery.persistence.repositories.question_repo import QuestionRepository
from discovery.persistence.repositories.user_repo import UserRepository

log = structlog.get_logger(__name__)


async def seed_backlog(
    db_path: Optional[Path] = None, backlog_path: Optional[Path] = None
) -> dict:
    """
    Seed the database.

    Returns:
        Counts of inserted rows per table
    """
    db_path = Path(db_path or settings.database_path)
    await init_database(db_path)
    backlog = load_backlog(backlog_path)

    users = UserRepository(str(db_path))
    projects = ProjectRepository(str(db_path))
    questions = QuestionRepository(str(db_path))
    inserted = {"users": 0, "projects": 0, "questions": 0}

    for user in backlog.users:
        try:
            await users.create(user)
            inserted["users"] += 1
        except sqlite3.IntegrityError:
            log.info("seed_row_exists", table="users", id=user.id)

    if backlog.project is not None:
        try:
            await projects.create(backlog.project)
            inserted["projects"] += 1
        except sqlite3.IntegrityError:
            log.info("seed_row_exists", table="projects", id=backlog.project.id)

    for question in backlog.questions:
        try:
            await questions.create(question)
            inserted["questions"] += 1
        except sqlite3.IntegrityError:
            log.info("seed_row_exists", table="discovery_questions", id=question.id)

    log.info("backlog_seeded", path=str(db_path), **inserted)
    return inserted


if __name__ == "__main__":
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    counts = asyncio.run(seed_backlog(backlog_path=path))
    print(f"Seeded: {counts}")
