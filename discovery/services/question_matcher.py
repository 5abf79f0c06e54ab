"""
Keyword-based question matching.

Scores a transcript chunk against every unanswered question and returns the
best match above a threshold.

Scoring per candidate:
1. Keyword overlap: words longer than three characters from both texts;
   each question word scores 1 when it and any chunk word are substrings of
   one another (either direction).
2. Domain-term bonus: +2 for each concept whose synonyms appear in both the
   question and the chunk.
3. Normalization by the number of question words.

Ties keep the first candidate in backlog order. That is an artifact of the
backlog ordering rather than a priority rule.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from discovery.core.config import discovery_config
from discovery.domain.models.question import Question

log = structlog.get_logger(__name__)

MIN_WORD_LENGTH = 4
DOMAIN_TERM_BONUS = 2

DOMAIN_TERMS: Dict[str, Tuple[str, ...]] = {
    "lead": ("lead", "prospect", "cliente", "contatto"),
    "tempo": ("tempo", "giorni", "settimane", "mesi", "durata", "ttd"),
    "step": ("step", "processo", "fase", "passaggio"),
    "tool": ("tool", "strumento", "crm", "software"),
    "mercato": ("mercato", "paese", "regione", "africa", "latam", "argentina"),
    "chi": ("chi", "persona", "team", "responsabile"),
}


@dataclass
class QuestionMatch:
    question: Question
    score: float


def _significant_words(text: str) -> List[str]:
    return [w for w in text.lower().split() if len(w) >= MIN_WORD_LENGTH]


def score_question(text: str, question: Question) -> float:
    """
    Normalized match score of text against one question.

    Args:
        text: Transcript chunk
        question: Candidate question

    Returns:
        Raw score divided by max(question word count, 1)
    """
    lower_text = text.lower()
    lower_question = question.text.lower()
    words = _significant_words(text)
    question_words = _significant_words(question.text)

    score = 0
    for q_word in question_words:
        if any(w in q_word or q_word in w for w in words):
            score += 1

    for terms in DOMAIN_TERMS.values():
        question_has_term = any(t in lower_question for t in terms)
        text_has_term = any(t in lower_text for t in terms)
        if question_has_term and text_has_term:
            score += DOMAIN_TERM_BONUS

    return score / max(len(question_words), 1)


def find_best_match(
    text: str,
    questions: Iterable[Question],
    threshold: Optional[float] = None,
) -> Optional[QuestionMatch]:
    """
    Find the unanswered question that best matches text.

    Args:
        text: Transcript chunk
        questions: Backlog questions (answered ones are skipped)
        threshold: Minimum score, exclusive (defaults to configured match_threshold)

    Returns:
        QuestionMatch with the strictly highest score above threshold, or None
    """
    if threshold is None:
        threshold = discovery_config.matching.match_threshold

    best: Optional[QuestionMatch] = None
    for question in questions:
        if question.answered:
            continue
        score = score_question(text, question)
        if score > threshold and (best is None or score > best.score):
            best = QuestionMatch(question=question, score=score)

    log.debug(
        "question_match_scored",
        best_question_id=best.question.id if best else None,
        best_score=round(best.score, 3) if best else 0.0,
    )
    return best
