"""
Backlog answering service.

Owns the live Question and AnswerHistory collections and is the only writer
of question answers. Every answer write follows the same order:

1. A new AnswerHistoryEntry is prepended to the in-memory timeline and
   appended to the store.
2. Only then is the question mutated in memory and in the store.

Store writes are not transactional. A failed write is logged and the
in-memory state is kept so the session stays usable; the affected record
is simply unpersisted.
"""

import uuid
from datetime import datetime, timezone
from typing import Awaitable, List, Optional, Sequence

import structlog

from discovery.core.exceptions import QuestionNotFoundError, ValidationError
from discovery.domain.models.question import AnswerHistoryEntry, AnswerSource, Question
from discovery.domain.models.user import User
from discovery.persistence.repositories.answer_history_repo import (
    AnswerHistoryRepository,
)
from discovery.persistence.repositories.question_repo import QuestionRepository
from discovery.services.mention_detector import detect_mentions

log = structlog.get_logger(__name__)

STT_AUTHOR = "STT"


def stt_author(operator_name: Optional[str], tag: str) -> str:
    """Author label for transcript-sourced answers, e.g. "Marco (STT)"."""
    if not operator_name:
        return tag
    return f"{operator_name} ({tag})"


async def write_to_store(operation: Awaitable, table: str, **context) -> bool:
    """
    Await a store write, logging instead of raising on failure.

    Returns:
        True if the write succeeded
    """
    try:
        await operation
        return True
    except Exception as e:
        log.error(
            "store_write_failed",
            table=table,
            error_type=type(e).__name__,
            error=str(e),
            **context,
        )
        return False


class AnswerService:
    """In-memory backlog with write-through persistence."""

    def __init__(
        self,
        question_repo: Optional[QuestionRepository] = None,
        history_repo: Optional[AnswerHistoryRepository] = None,
    ):
        self.question_repo = question_repo
        self.history_repo = history_repo
        self.questions: List[Question] = []
        # Newest first
        self.history: List[AnswerHistoryEntry] = []

    async def load(self) -> None:
        """Replace the in-memory collections with the store contents."""
        if self.question_repo is not None:
            self.questions = await self.question_repo.list_all()
        if self.history_repo is not None:
            self.history = await self.history_repo.list_all()
        log.info(
            "backlog_loaded",
            question_count=len(self.questions),
            history_count=len(self.history),
        )

    def set_backlog(
        self,
        questions: Sequence[Question],
        history: Sequence[AnswerHistoryEntry] = (),
    ) -> None:
        self.questions = list(questions)
        self.history = list(history)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_question(self, question_id: str) -> Question:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise QuestionNotFoundError(f"Question {question_id} not found")

    def history_for(self, question_id: str) -> List[AnswerHistoryEntry]:
        """History entries of one question, newest first."""
        return [entry for entry in self.history if entry.question_id == question_id]

    def unanswered(self) -> List[Question]:
        return [q for q in self.questions if not q.answered]

    def answered_count(self) -> int:
        return sum(1 for q in self.questions if q.answered)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def record_auto_answer(
        self,
        question_id: str,
        answer: str,
        mentioned_user_ids: Sequence[str],
        operator_name: Optional[str] = None,
    ) -> Question:
        """Answer a question from the live transcript."""
        return await self._write_answer(
            question_id,
            answer,
            mentioned_user_ids,
            source=AnswerSource.STT,
            history_author=operator_name or STT_AUTHOR,
            question_author=stt_author(operator_name, "STT"),
        )

    async def record_correction(
        self,
        question_id: str,
        answer: str,
        mentioned_user_ids: Sequence[str],
        operator_name: Optional[str] = None,
    ) -> Question:
        """Overwrite an answer with a spoken correction."""
        return await self._write_answer(
            question_id,
            answer,
            mentioned_user_ids,
            source=AnswerSource.STT_CORRECTION,
            history_author=stt_author(operator_name, "STT"),
            question_author=stt_author(operator_name, "STT - corretto"),
        )

    async def answer_manually(
        self,
        question_id: str,
        answer: str,
        operator: User,
        roster: Sequence[User] = (),
    ) -> Question:
        """
        Record an answer typed by an operator.

        Mentions are detected in the answer text against the roster.

        Raises:
            QuestionNotFoundError: Unknown question id
            ValidationError: Empty answer text
        """
        answer = answer.strip()
        if not answer:
            raise ValidationError("Answer text must not be empty")
        return await self._write_answer(
            question_id,
            answer,
            detect_mentions(answer, roster),
            source=AnswerSource.MANUAL,
            history_author=operator.name,
            question_author=operator.name,
        )

    async def reset_answer(self, question_id: str) -> Question:
        """
        Return a question to the unanswered state.

        The history timeline is append-only and is left untouched.
        """
        question = self.get_question(question_id)
        updated = question.cleared()
        self._replace(updated)
        if self.question_repo is not None:
            await write_to_store(
                self.question_repo.save_answer(updated),
                "discovery_questions",
                question_id=question_id,
            )
        log.info("answer_reset", question_id=question_id)
        return updated

    async def _write_answer(
        self,
        question_id: str,
        answer: str,
        mentioned_user_ids: Sequence[str],
        source: AnswerSource,
        history_author: str,
        question_author: str,
    ) -> Question:
        question = self.get_question(question_id)
        now = datetime.now(timezone.utc)

        entry = AnswerHistoryEntry(
            id=str(uuid.uuid4()),
            question_id=question.id,
            answer=answer,
            answered_by=history_author,
            mentioned_users=list(mentioned_user_ids),
            source=source,
            created_at=now,
        )
        self.history.insert(0, entry)
        if self.history_repo is not None:
            await write_to_store(
                self.history_repo.append(entry),
                "answer_history",
                question_id=question.id,
            )

        updated = question.with_answer(
            answer=answer,
            answered_by=question_author,
            mentioned_users=list(mentioned_user_ids),
            answered_at=now,
        )
        self._replace(updated)
        if self.question_repo is not None:
            await write_to_store(
                self.question_repo.save_answer(updated),
                "discovery_questions",
                question_id=question.id,
            )

        log.info(
            "answer_recorded",
            question_id=question.id,
            source=source.value,
            answered_by=question_author,
            mention_count=len(entry.mentioned_users),
        )
        return updated

    def _replace(self, updated: Question) -> None:
        for i, question in enumerate(self.questions):
            if question.id == updated.id:
                self.questions[i] = updated
                return
        raise QuestionNotFoundError(f"Question {updated.id} not found")
