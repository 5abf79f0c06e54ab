"""Tests for store initialization and the health report."""

import aiosqlite
import pytest

from discovery.core import config
from discovery.domain.models.session import ListeningSession
from discovery.persistence.database import REQUIRED_TABLES, check_database_health, init_database
from discovery.persistence.repositories import ListeningSessionRepository, QuestionRepository


@pytest.mark.asyncio
async def test_init_is_idempotent(test_db, questions):
    await QuestionRepository(str(test_db)).create(questions[0])

    await init_database(test_db)

    assert len(await QuestionRepository(str(test_db)).list_all()) == 1


@pytest.mark.asyncio
async def test_health_counts(test_db, questions):
    repo = QuestionRepository(str(test_db))
    for question in questions:
        await repo.create(question)
    await repo.save_answer(questions[0].with_answer("Dal sito", "STT", []))
    await ListeningSessionRepository(str(test_db)).create(ListeningSession(id="s1"))

    health = await check_database_health()

    assert health["status"] == "healthy"
    assert health["question_count"] == 3
    assert health["answered_count"] == 1
    assert health["active_sessions"] == 1


@pytest.mark.asyncio
async def test_health_reports_missing_tables(tmp_path, monkeypatch):
    empty = tmp_path / "empty.db"
    async with aiosqlite.connect(empty) as db:
        await db.execute("CREATE TABLE users (id TEXT PRIMARY KEY)")
        await db.commit()
    monkeypatch.setattr(config.settings, "database_path", empty)

    health = await check_database_health()

    assert health["status"] == "unhealthy"
    assert health["missing_tables"] == [t for t in REQUIRED_TABLES if t != "users"]
