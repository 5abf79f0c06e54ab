"""Discovery backlog domain models.

Core Models:
    - Question: an open (or answered) discovery question in the backlog
    - AnswerHistoryEntry: append-only record written before every answer write

Invariant: ``answered`` is True if and only if ``answer`` is present. The
mutation helpers on Question keep the two in step.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class QuestionPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnswerSource(str, Enum):
    """Where an answer came from.

    Values:
        - MANUAL: typed by an operator
        - STT: matched automatically from the live transcript
        - STT_CORRECTION: overwritten by a spoken correction
    """

    MANUAL = "manual"
    STT = "stt"
    STT_CORRECTION = "stt_correction"


class Question(BaseModel):
    """A discovery question owned by the backlog."""

    id: str
    category: str
    text: str
    priority: QuestionPriority = QuestionPriority.MEDIUM
    answered: bool = False
    answer: Optional[str] = None
    answered_by: Optional[str] = None
    answered_at: Optional[datetime] = None
    mentioned_users: List[str] = Field(default_factory=list)
    sort_order: int = 0

    @model_validator(mode="after")
    def answered_iff_answer(self) -> "Question":
        if self.answered != (self.answer is not None):
            raise ValueError(
                f"Question {self.id}: answered={self.answered} but answer "
                f"{'is set' if self.answer is not None else 'is missing'}"
            )
        return self

    def with_answer(
        self,
        answer: str,
        answered_by: str,
        mentioned_users: List[str],
        answered_at: Optional[datetime] = None,
    ) -> "Question":
        """Return a copy carrying the given answer."""
        return self.model_copy(
            update={
                "answered": True,
                "answer": answer,
                "answered_by": answered_by,
                "answered_at": answered_at or datetime.now(timezone.utc),
                "mentioned_users": list(mentioned_users),
            }
        )

    def cleared(self) -> "Question":
        """Return a copy reset to unanswered."""
        return self.model_copy(
            update={
                "answered": False,
                "answer": None,
                "answered_by": None,
                "answered_at": None,
                "mentioned_users": [],
            }
        )


class AnswerHistoryEntry(BaseModel):
    """One row of the append-only answer timeline. Never updated or deleted."""

    id: str
    question_id: str
    answer: str
    answered_by: str
    mentioned_users: List[str] = Field(default_factory=list)
    source: AnswerSource
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"from_attributes": True}
