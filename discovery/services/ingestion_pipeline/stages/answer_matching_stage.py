"""
Stage 3: match the chunk to an open question and record the answer.

Skipped when the chunk was consumed as a correction.
"""

from typing import TYPE_CHECKING, Optional

import structlog

from ..base import IngestionStage
from .correction_stage import mentioned_names_suffix
from discovery.core.config import discovery_config
from discovery.domain.models.extraction import (
    Suggestion,
    SuggestionPriority,
    SuggestionType,
)
from discovery.domain.models.session import LastAnswered
from discovery.services.ai_extraction_service import AIExtractionService
from discovery.services.answer_service import AnswerService
from discovery.services.mention_detector import detect_mentions, names_for
from discovery.services.question_matcher import find_best_match

if TYPE_CHECKING:
    from ..context import IngestionContext

log = structlog.get_logger(__name__)


class AnswerMatchingStage(IngestionStage):
    def __init__(
        self,
        ai_service: AIExtractionService,
        answer_service: AnswerService,
        auto_answer_threshold: Optional[float] = None,
    ):
        self.ai = ai_service
        self.answers = answer_service
        self.threshold = (
            auto_answer_threshold
            if auto_answer_threshold is not None
            else discovery_config.matching.auto_answer_threshold
        )

    async def process(self, context: "IngestionContext") -> "IngestionContext":
        if context.correction_applied:
            return context

        roster = context.session.roster
        result = await self.ai.extract(context.text, self.answers.questions, roster)
        context.ai_result = result

        if result.confidence <= self.threshold:
            return context

        question_id = self._resolve_target(result.matched_question_id, context.text)
        if question_id is None:
            return context

        mentions = result.mentioned_user_ids or detect_mentions(context.text, roster)
        question = await self.answers.record_auto_answer(
            question_id,
            result.extracted_answer or context.text,
            mentions,
            operator_name=context.session.operator_name,
        )
        context.session.last_answered = LastAnswered(
            question_id=question_id, timestamp_ms=context.now_ms
        )
        context.answered_question_id = question_id
        context.emitted_suggestions.append(
            Suggestion(
                type=SuggestionType.AUTO_ANSWER,
                content=f'Risposta salvata per: "{question.text[:50]}..."'
                + mentioned_names_suffix(names_for(mentions, roster)),
                priority=SuggestionPriority.HIGH,
            )
        )

        log.info(
            "auto_answer_recorded",
            session_id=context.session_id,
            question_id=question_id,
            confidence=result.confidence,
            source=result.source,
        )
        return context

    def _resolve_target(self, matched_id: Optional[str], text: str) -> Optional[str]:
        """Use the reported id if it is an open question, else the keyword match."""
        open_ids = {q.id for q in self.answers.unanswered()}
        if matched_id in open_ids:
            return matched_id
        if matched_id is not None:
            log.warning("matched_question_not_open", question_id=matched_id)
        match = find_best_match(text, self.answers.questions)
        return match.question.id if match else None
