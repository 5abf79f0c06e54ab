"""
Stage 2: spoken corrections.

A chunk overwrites the last answer when it carries a correction phrase and
the LastAnswered pointer is younger than the correction window. When the
correction applies, later stages skip fresh question matching.
"""

from typing import TYPE_CHECKING, Optional

import structlog

from ..base import IngestionStage
from discovery.core.config import discovery_config
from discovery.core.exceptions import QuestionNotFoundError
from discovery.domain.models.extraction import (
    Suggestion,
    SuggestionPriority,
    SuggestionType,
)
from discovery.services.answer_service import AnswerService
from discovery.services.correction_classifier import (
    find_correction_phrase,
    strip_correction_phrase,
)
from discovery.services.mention_detector import detect_mentions, names_for

if TYPE_CHECKING:
    from ..context import IngestionContext

log = structlog.get_logger(__name__)


def mentioned_names_suffix(names) -> str:
    return f" - Menzionati: {', '.join(names)}" if names else ""


class CorrectionStage(IngestionStage):
    def __init__(self, answer_service: AnswerService, window_ms: Optional[int] = None):
        """
        Args:
            answer_service: Backlog writer
            window_ms: Correction window (defaults to configured window_ms)
        """
        self.answers = answer_service
        self.window_ms = (
            window_ms if window_ms is not None else discovery_config.correction.window_ms
        )

    async def process(self, context: "IngestionContext") -> "IngestionContext":
        pointer = context.session.last_answered
        phrase = find_correction_phrase(context.text)
        if phrase is None or pointer is None:
            return context

        age_ms = context.now_ms - pointer.timestamp_ms
        if age_ms >= self.window_ms:
            log.debug("correction_window_expired", age_ms=age_ms, phrase=phrase)
            return context

        corrected = strip_correction_phrase(context.text) or context.text.strip()
        roster = context.session.roster
        mentions = detect_mentions(corrected, roster)

        try:
            await self.answers.record_correction(
                pointer.question_id,
                corrected,
                mentions,
                operator_name=context.session.operator_name,
            )
        except QuestionNotFoundError:
            log.warning(
                "correction_target_missing", question_id=pointer.question_id
            )
            context.session.last_answered = None
            return context

        context.correction_applied = True
        context.corrected_question_id = pointer.question_id
        context.emitted_suggestions.append(
            Suggestion(
                type=SuggestionType.CORRECTION,
                content=f'Risposta CORRETTA: "{corrected[:50]}..."'
                + mentioned_names_suffix(names_for(mentions, roster)),
                priority=SuggestionPriority.HIGH,
            )
        )

        log.info(
            "correction_applied",
            session_id=context.session_id,
            question_id=pointer.question_id,
            phrase=phrase,
            age_ms=age_ms,
        )
        return context
