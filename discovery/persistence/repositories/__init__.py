"""Repositories for the discovery record store."""

from discovery.persistence.repositories.answer_history_repo import AnswerHistoryRepository
from discovery.persistence.repositories.extraction_repo import ExtractionRepository
from discovery.persistence.repositories.listening_session_repo import (
    ListeningSessionRepository,
)
from discovery.persistence.repositories.project_repo import ProjectRepository
from discovery.persistence.repositories.question_repo import QuestionRepository
from discovery.persistence.repositories.user_repo import UserRepository

__all__ = [
    "AnswerHistoryRepository",
    "ExtractionRepository",
    "ListeningSessionRepository",
    "ProjectRepository",
    "QuestionRepository",
    "UserRepository",
]
