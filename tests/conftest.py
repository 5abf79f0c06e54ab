"""
Shared test fixtures.

Temporary SQLite databases, a small backlog and roster, and a controllable
millisecond clock for correction-window tests.
"""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from discovery.domain.models.question import Question, QuestionPriority
from discovery.domain.models.user import User, UserRole
from discovery.persistence.database import init_database


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start_ms: float = 1_000_000.0):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms


@pytest.fixture
async def test_db():
    """Create and initialize test database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        await init_database(db_path)

        from discovery.core import config

        original_path = config.settings.database_path
        config.settings.database_path = db_path

        with patch("discovery.persistence.database.settings", config.settings):
            yield db_path

        config.settings.database_path = original_path


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def roster():
    return [
        User(id="u-owner", name="Giulia Ferri", role=UserRole.OWNER),
        User(id="u-marco", name="Marco Rossi", role=UserRole.TEAM_MEMBER),
        User(id="u-luca", name="Luca Bianchi", role=UserRole.TEAM_MEMBER),
    ]


@pytest.fixture
def questions():
    return [
        Question(
            id="q-lead",
            category="Acquisizione",
            text="Da dove arrivano oggi i lead e chi li qualifica?",
            priority=QuestionPriority.CRITICAL,
            sort_order=0,
        ),
        Question(
            id="q-timing",
            category="Processo",
            text="Quanto tempo passa in media dal primo contatto alla firma?",
            priority=QuestionPriority.CRITICAL,
            sort_order=1,
        ),
        Question(
            id="q-tools",
            category="Strumenti",
            text="Quali tool o CRM usate per tracciare le opportunità?",
            priority=QuestionPriority.MEDIUM,
            sort_order=2,
        ),
    ]
