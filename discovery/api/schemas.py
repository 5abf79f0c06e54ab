"""
API request/response schemas.

Pydantic models for API validation and serialization. Domain models are
returned directly where their shape is already the wire shape.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from discovery.domain.models.extraction import Extraction, Suggestion, Uncertainty
from discovery.domain.models.question import AnswerHistoryEntry, Question
from discovery.domain.models.session import SessionStatus, TranscriptEntry


# ============ SESSION SCHEMAS ============


class StartSessionRequest(BaseModel):
    """Request to start listening."""

    user_id: Optional[str] = Field(
        default=None, description="Operator running the call (roster id)"
    )


class SessionStatusResponse(BaseModel):
    """Session record plus live controller state."""

    id: str
    project_id: Optional[str] = None
    started_by: Optional[str] = None
    status: SessionStatus
    started_at: datetime
    ended_at: Optional[datetime] = None
    transcript_count: int = 0
    extraction_count: int = 0
    is_listening: bool = False
    should_auto_restart: bool = False
    buffered_chars: int = 0
    flush_pending: bool = False


class UtteranceRequest(BaseModel):
    """Recognizer result pushed by the client."""

    text: str = Field(..., min_length=1, max_length=5000)
    is_final: bool = True
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class UtteranceResponse(BaseModel):
    accepted: bool
    entry: Optional[TranscriptEntry] = None


class RecognizerEventRequest(BaseModel):
    """Recognizer lifecycle event reported by the client."""

    event: Literal["error", "end"]
    error_code: Optional[str] = None


class RecognizerEventResponse(BaseModel):
    """Whether the client should restart its recognizer, and after how long."""

    restart: bool
    delay_seconds: float = 0.0


class IngestionResultSchema(BaseModel):
    correction_applied: bool
    answered_question_id: Optional[str] = None
    corrected_question_id: Optional[str] = None
    extraction_count: int = 0
    uncertainty_count: int = 0
    suggestions: List[Suggestion] = Field(default_factory=list)
    kpi_fields_pushed: List[str] = Field(default_factory=list)
    latency_ms: int = 0


class FlushResponse(BaseModel):
    flushed: bool
    result: Optional[IngestionResultSchema] = None


class SessionLogsResponse(BaseModel):
    """Bounded session logs.

    Transcripts and extractions are oldest first; uncertainties and
    suggestions are newest first.
    """

    session_id: str
    transcripts: List[TranscriptEntry]
    extractions: List[Extraction]
    uncertainties: List[Uncertainty]
    suggestions: List[Suggestion]


# ============ QUESTION SCHEMAS ============


class QuestionListResponse(BaseModel):
    questions: List[Question]
    answered_count: int
    total: int


class AnswerRequest(BaseModel):
    """Manual answer typed by an operator."""

    answer: str = Field(..., min_length=1, max_length=5000)
    user_id: str


class AnswerHistoryResponse(BaseModel):
    question_id: str
    entries: List[AnswerHistoryEntry]
