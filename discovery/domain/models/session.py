"""Listening session domain models.

This module defines the records around one live-call listening session.

Core Models:
    - ListeningSession: persisted session row with summary counts
    - TranscriptEntry: one line of the rolling transcript display log
    - RecognizerResult: a recognizer push event (text, finality, confidence)
    - LastAnswered: in-memory pointer gating correction detection

Session Lifecycle:
    1. Opened by start_session (status: active)
    2. Utterances accumulate, chunks flush through the ingestion pipeline
    3. Closed by stop_session with transcript/extraction counts (status: completed)
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class ListeningSession(BaseModel):
    """Persisted listening session (stt_sessions table)."""

    id: str
    project_id: Optional[str] = None
    started_by: Optional[str] = None
    status: SessionStatus = SessionStatus.ACTIVE
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: Optional[datetime] = None
    transcript_count: int = 0
    extraction_count: int = 0


class TranscriptEntry(BaseModel):
    """Finalized utterance as shown in the transcript log."""

    text: str
    time: datetime
    confidence: int = Field(ge=0, le=100, description="Recognizer confidence in percent")


class RecognizerResult(BaseModel):
    """Push event delivered by the external speech recognizer."""

    text: str
    is_final: bool = True
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class LastAnswered(BaseModel):
    """Most recent answer, used only to gate corrections."""

    question_id: str
    timestamp_ms: float
