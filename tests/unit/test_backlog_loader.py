"""Tests for the seed backlog loader."""

import pytest

from discovery.core.backlog_loader import load_backlog
from discovery.core.exceptions import ConfigurationError
from discovery.domain.models.question import QuestionPriority
from discovery.domain.models.user import UserRole


def test_shipped_backlog_loads():
    backlog = load_backlog()

    assert backlog.project.id == "proj-expansion"
    assert any(u.role == UserRole.OWNER for u in backlog.users)
    assert [q.sort_order for q in backlog.questions] == list(range(len(backlog.questions)))
    assert all(not q.answered for q in backlog.questions)


def test_file_order_becomes_sort_order(tmp_path):
    path = tmp_path / "backlog.yaml"
    path.write_text(
        "questions:\n"
        "  - {id: q-b, category: X, text: Seconda?, priority: low}\n"
        "  - {id: q-a, category: X, text: Prima?, sort_order: 7}\n"
    )

    backlog = load_backlog(path)

    assert backlog.project is None
    assert [(q.id, q.sort_order) for q in backlog.questions] == [("q-b", 0), ("q-a", 7)]
    assert backlog.questions[0].priority == QuestionPriority.LOW


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_backlog(tmp_path / "missing.yaml")


def test_duplicate_ids_rejected(tmp_path):
    path = tmp_path / "backlog.yaml"
    path.write_text(
        "questions:\n"
        "  - {id: q-a, category: X, text: Uno?}\n"
        "  - {id: q-a, category: X, text: Due?}\n"
    )

    with pytest.raises(ConfigurationError, match="q-a"):
        load_backlog(path)


def test_invalid_question_rejected(tmp_path):
    path = tmp_path / "backlog.yaml"
    path.write_text("questions:\n  - {id: q-a, category: X, text: Uno?, priority: urgent}\n")

    with pytest.raises(ConfigurationError):
        load_backlog(path)
