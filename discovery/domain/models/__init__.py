"""Domain models for the discovery assistant."""

from discovery.domain.models.extraction import (
    ConfidenceLevel,
    Extraction,
    ExtractionCategory,
    ExtractionField,
    Suggestion,
    SuggestionPriority,
    SuggestionType,
    TranscriptAnalysis,
    Uncertainty,
)
from discovery.domain.models.project import Decision, Project
from discovery.domain.models.question import (
    AnswerHistoryEntry,
    AnswerSource,
    Question,
    QuestionPriority,
)
from discovery.domain.models.report import ReportMetadata, SessionReport
from discovery.domain.models.session import (
    LastAnswered,
    ListeningSession,
    RecognizerResult,
    SessionStatus,
    TranscriptEntry,
)
from discovery.domain.models.user import User, UserRole

__all__ = [
    "AnswerHistoryEntry",
    "AnswerSource",
    "ConfidenceLevel",
    "Decision",
    "Extraction",
    "ExtractionCategory",
    "ExtractionField",
    "LastAnswered",
    "ListeningSession",
    "Project",
    "Question",
    "QuestionPriority",
    "RecognizerResult",
    "ReportMetadata",
    "SessionReport",
    "SessionStatus",
    "Suggestion",
    "SuggestionPriority",
    "SuggestionType",
    "TranscriptAnalysis",
    "TranscriptEntry",
    "Uncertainty",
    "User",
    "UserRole",
]
