"""Dependency injection for API routes."""

from functools import lru_cache
from typing import Annotated, Optional

import structlog
from fastapi import Depends

from discovery.core.config import discovery_config, settings
from discovery.core.exceptions import ConfigurationError
from discovery.llm.client import LLMClient, get_matching_llm_client
from discovery.persistence.repositories.answer_history_repo import (
    AnswerHistoryRepository,
)
from discovery.persistence.repositories.extraction_repo import ExtractionRepository
from discovery.persistence.repositories.listening_session_repo import (
    ListeningSessionRepository,
)
from discovery.persistence.repositories.project_repo import ProjectRepository
from discovery.persistence.repositories.question_repo import QuestionRepository
from discovery.persistence.repositories.user_repo import UserRepository
from discovery.services.ai_extraction_service import AIExtractionService
from discovery.services.answer_service import AnswerService
from discovery.services.listening_session import ListeningSessionController
from discovery.services.project_service import ProjectService
from discovery.services.report_service import ReportService

log = structlog.get_logger(__name__)


def get_user_repository() -> UserRepository:
    """FastAPI dependency injection for UserRepository."""
    return UserRepository(str(settings.database_path))


def get_listening_session_repository() -> ListeningSessionRepository:
    """FastAPI dependency injection for ListeningSessionRepository."""
    return ListeningSessionRepository(str(settings.database_path))


def get_report_service() -> ReportService:
    """Report builder reading persisted extractions."""
    return ReportService(ExtractionRepository(str(settings.database_path)))


@lru_cache(maxsize=1)
def get_shared_matching_client() -> Optional[LLMClient]:
    """Cached LLM client for question matching.

    Returns None when AI extraction is disabled or the provider is not
    configured; matching then runs on keywords only.
    """
    if not settings.ai_extraction_enabled:
        log.info("ai_extraction_disabled")
        return None
    try:
        return get_matching_llm_client()
    except ConfigurationError as e:
        log.warning("ai_extraction_unavailable", error=e.message)
        return None


@lru_cache(maxsize=1)
def get_answer_service() -> AnswerService:
    """Process-wide backlog. Loaded from the store at startup."""
    db_path = str(settings.database_path)
    return AnswerService(
        question_repo=QuestionRepository(db_path),
        history_repo=AnswerHistoryRepository(db_path),
    )


@lru_cache(maxsize=1)
def get_session_controller() -> ListeningSessionController:
    """Process-wide listening session controller (one session at a time)."""
    db_path = str(settings.database_path)
    return ListeningSessionController(
        answer_service=get_answer_service(),
        ai_service=AIExtractionService(
            llm_client=get_shared_matching_client(),
            fallback_confidence=discovery_config.matching.fallback_confidence,
        ),
        session_repo=ListeningSessionRepository(db_path),
        extraction_repo=ExtractionRepository(db_path),
        user_repo=UserRepository(db_path),
        project_service=ProjectService(ProjectRepository(db_path)),
        config=discovery_config,
    )


def reset_shared_state() -> None:
    """Drop cached singletons (used when the database path changes)."""
    get_session_controller.cache_clear()
    get_answer_service.cache_clear()
    get_shared_matching_client.cache_clear()


# Type aliases for dependency injection
UserRepoDep = Annotated[UserRepository, Depends(get_user_repository)]
SessionRepoDep = Annotated[
    ListeningSessionRepository, Depends(get_listening_session_repository)
]
AnswerServiceDep = Annotated[AnswerService, Depends(get_answer_service)]
ControllerDep = Annotated[ListeningSessionController, Depends(get_session_controller)]
ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]
