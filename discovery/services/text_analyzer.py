"""
Lexical transcript analyzer.

Pulls KPI and budget figures, market mentions, decision language and vague
language out of a flushed transcript chunk using a fixed battery of patterns.

The analyzer is pure and stateless: identical input always yields identical
output. Each category is checked independently, so a single chunk can yield
extractions, uncertainties and suggestions at the same time.
"""

import re
from typing import List, NamedTuple, Optional, Tuple

import structlog

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

log = structlog.get_logger(__name__)

QUOTE_CONTEXT_CHARS = 20

TTD_PATTERN = re.compile(r"(\d+)\s*(giorni|days)", re.IGNORECASE)
PROJECTS_PATTERN = re.compile(r"(\d+)\s*(progetti|projects)", re.IGNORECASE)
CONVERSION_PATTERN = re.compile(r"(\d+(?:[.,]\d+)?)\s*%")
BUDGET_PATTERN = re.compile(r"(\d+)\s*(k|mila|euro|€)", re.IGNORECASE)

# Units that mean "thousands"
THOUSAND_UNITS = {"k", "mila"}


class CountryPattern(NamedTuple):
    name: str
    synonyms: Tuple[str, ...]


COUNTRIES: Tuple[CountryPattern, ...] = (
    CountryPattern("Brasile", ("brasile", "brazil")),
    CountryPattern("Argentina", ("argentina",)),
    CountryPattern("Messico", ("messico", "mexico")),
    CountryPattern("Nigeria", ("nigeria",)),
    CountryPattern("Africa", ("africa",)),
    CountryPattern("Malta", ("malta",)),
    CountryPattern("Sud Africa", ("sud africa", "south africa")),
)

VAGUE_MARKERS: Tuple[str, ...] = (
    "circa",
    "forse",
    "più o meno",
    "probabilmente",
    "penso",
    "credo",
    "dovrebbe",
)

DECISION_MARKERS: Tuple[str, ...] = (
    "deciso",
    "abbiamo stabilito",
    "procediamo con",
    "andiamo con",
)


def _quote(text: str, match: re.Match) -> str:
    start = max(0, match.start() - QUOTE_CONTEXT_CHARS)
    end = min(len(text), match.end() + QUOTE_CONTEXT_CHARS)
    return text[start:end]


def _extract_ttd(text: str) -> Optional[Extraction]:
    match = TTD_PATTERN.search(text)
    if not match:
        return None
    return Extraction(
        field=ExtractionField.TTD_CURRENT,
        value=match.group(1),
        confidence=ConfidenceLevel.HIGH,
        category=ExtractionCategory.KPI,
        quote=_quote(text, match),
    )


def _extract_projects(text: str) -> Optional[Extraction]:
    match = PROJECTS_PATTERN.search(text)
    if not match:
        return None
    return Extraction(
        field=ExtractionField.TARGET_PROJECTS,
        value=match.group(1),
        confidence=ConfidenceLevel.MEDIUM,
        category=ExtractionCategory.KPI,
    )


def _extract_conversion(text: str) -> Optional[Extraction]:
    match = CONVERSION_PATTERN.search(text)
    if not match:
        return None
    return Extraction(
        field=ExtractionField.CONVERSION_RATE,
        value=match.group(1).replace(",", "."),
        confidence=ConfidenceLevel.HIGH,
        category=ExtractionCategory.KPI,
    )


def _extract_budget(text: str) -> Optional[Extraction]:
    match = BUDGET_PATTERN.search(text)
    if not match:
        return None
    amount = int(match.group(1))
    if match.group(2).lower() in THOUSAND_UNITS:
        amount *= 1000
    return Extraction(
        field=ExtractionField.BUDGET,
        value=str(amount),
        confidence=ConfidenceLevel.MEDIUM,
        category=ExtractionCategory.ECONOMIC,
    )


# Pattern-check order fixes the order of extractions in the result
EXTRACTORS = (_extract_ttd, _extract_projects, _extract_conversion, _extract_budget)


def _market_suggestions(lower_text: str) -> List[Suggestion]:
    suggestions = []
    for country in COUNTRIES:
        if any(synonym in lower_text for synonym in country.synonyms):
            suggestions.append(
                Suggestion(
                    type=SuggestionType.MARKET,
                    content=f"Menzionato {country.name} - verificare requisiti regolatori",
                    priority=SuggestionPriority.MEDIUM,
                )
            )
    return suggestions


def _uncertainties(lower_text: str) -> List[Uncertainty]:
    return [
        Uncertainty(
            topic="Dato approssimativo",
            reason=f'Usato "{marker}"',
            question="Puoi darmi un numero più preciso?",
            marker=marker,
        )
        for marker in VAGUE_MARKERS
        if marker in lower_text
    ]


def _decision_suggestions(text: str, lower_text: str) -> List[Suggestion]:
    suggestions = []
    for marker in DECISION_MARKERS:
        idx = lower_text.find(marker)
        if idx < 0:
            continue
        excerpt = text[idx : idx + 50]
        suggestions.append(
            Suggestion(
                type=SuggestionType.DECISION,
                content=f'Possibile decisione rilevata - documentare: "{excerpt}"',
                priority=SuggestionPriority.HIGH,
            )
        )
    return suggestions


def analyze_transcript(text: str) -> TranscriptAnalysis:
    """
    Analyze a transcript chunk.

    Args:
        text: Free text (a flushed buffer, possibly several utterances)

    Returns:
        TranscriptAnalysis with at most one extraction per field, one market
        suggestion per country, one uncertainty per vague marker and one
        decision suggestion per decision marker
    """
    lower_text = text.lower()

    extractions = [e for e in (extract(text) for extract in EXTRACTORS) if e]
    uncertainties = _uncertainties(lower_text)
    suggestions = _market_suggestions(lower_text) + _decision_suggestions(
        text, lower_text
    )

    log.debug(
        "transcript_analyzed",
        text_length=len(text),
        extraction_count=len(extractions),
        uncertainty_count=len(uncertainties),
        suggestion_count=len(suggestions),
    )

    return TranscriptAnalysis(
        extractions=extractions,
        uncertainties=uncertainties,
        suggestions=suggestions,
    )
