"""
AI-assisted answer extraction.

Two-stage strategy:
1. Primary: one LLM call maps the chunk to an open question, extracts the
   answer text and the team names mentioned, with a confidence score.
2. Fallback: keyword question matching plus first-name mention detection,
   with a fixed confidence when a question matched.

The fallback runs on any primary failure (network error, timeout, missing or
malformed JSON) and when no LLM client is configured. Nothing raised by the
primary stage crosses this service's boundary.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import structlog

from discovery.core.config import discovery_config
from discovery.domain.models.question import Question
from discovery.domain.models.user import User, UserRole
from discovery.llm.client import LLMClient
from discovery.llm.prompts.matching import get_matching_prompt, parse_matching_response
from discovery.services.mention_detector import detect_mentions
from discovery.services.question_matcher import find_best_match

log = structlog.get_logger(__name__)


@dataclass
class AIExtractionResult:
    """Well-formed result returned on every path."""

    matched_question_id: Optional[str]
    extracted_answer: str
    mentioned_user_ids: List[str] = field(default_factory=list)
    confidence: float = 0.0
    source: str = "llm"  # "llm" or "fallback"


def map_names_to_user_ids(names: Sequence[str], users: Sequence[User]) -> List[str]:
    """
    Map model-reported names to roster ids.

    A name maps to the first user whose display name contains it
    (case-insensitive). Unmapped names are dropped.
    """
    user_ids: List[str] = []
    for name in names:
        needle = str(name).strip().lower()
        if not needle:
            continue
        for user in users:
            if needle in user.name.lower():
                if user.id not in user_ids:
                    user_ids.append(user.id)
                break
    return user_ids


class AIExtractionService:
    """
    Maps a transcript chunk to an open question.

    Uses the LLM when available, keyword matching otherwise.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        fallback_confidence: Optional[float] = None,
    ):
        """
        Initialize extraction service.

        Args:
            llm_client: LLM client instance; None skips the primary stage
            fallback_confidence: Confidence for a keyword match
                (defaults to configured fallback_confidence)
        """
        self.llm = llm_client
        self.fallback_confidence = (
            fallback_confidence
            if fallback_confidence is not None
            else discovery_config.matching.fallback_confidence
        )

    async def extract(
        self, text: str, questions: Sequence[Question], users: Sequence[User]
    ) -> AIExtractionResult:
        """
        Extract question match, answer and mentions from a chunk.

        Args:
            text: Flushed transcript chunk
            questions: Full backlog (answered questions are ignored)
            users: Full roster

        Returns:
            AIExtractionResult, never raises
        """
        if self.llm is None:
            log.debug("ai_extraction_skipped", reason="no_llm_client")
            return self._fallback(text, questions, users)

        try:
            return await self._extract_via_llm(text, questions, users)
        except Exception as e:
            log.warning(
                "ai_extraction_fallback",
                error_type=type(e).__name__,
                error=str(e),
            )
            return self._fallback(text, questions, users)

    async def _extract_via_llm(
        self, text: str, questions: Sequence[Question], users: Sequence[User]
    ) -> AIExtractionResult:
        unanswered = [q for q in questions if not q.answered]
        team_names = [u.name for u in users if u.role == UserRole.TEAM_MEMBER]

        response = await self.llm.complete(
            prompt=get_matching_prompt(text, unanswered, team_names),
        )
        parsed = parse_matching_response(response.content)

        result = AIExtractionResult(
            matched_question_id=parsed.matched_question_id,
            extracted_answer=parsed.extracted_answer or text,
            mentioned_user_ids=map_names_to_user_ids(parsed.mentioned_names, users),
            confidence=parsed.confidence,
            source="llm",
        )
        log.info(
            "ai_extraction_complete",
            matched_question_id=result.matched_question_id,
            confidence=result.confidence,
            mention_count=len(result.mentioned_user_ids),
        )
        return result

    def _fallback(
        self, text: str, questions: Sequence[Question], users: Sequence[User]
    ) -> AIExtractionResult:
        match = find_best_match(text, questions)
        return AIExtractionResult(
            matched_question_id=match.question.id if match else None,
            extracted_answer=text,
            mentioned_user_ids=detect_mentions(text, users),
            confidence=self.fallback_confidence if match else 0.0,
            source="fallback",
        )
