"""Transcript analysis domain models.

This module defines the structured facts pulled out of a flushed transcript
chunk by the lexical analyzer.

Core Concepts:
    - Extraction: a KPI or economic figure (at most one per field per chunk)
    - Uncertainty: a vague-language hit, advisory only, never persisted
    - Suggestion: an ephemeral notice for the call operator
    - TranscriptAnalysis: the three lists produced for a single chunk

Extractions are not deduplicated across chunks: every flush can emit a fresh
extraction for the same field.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ExtractionField(str, Enum):
    """KPI and economic fields recognised by the analyzer."""

    TTD_CURRENT = "ttd_current"
    TARGET_PROJECTS = "target_projects"
    CONVERSION_RATE = "conversion_rate"
    BUDGET = "budget"


class ExtractionCategory(str, Enum):
    """Grouping used by the session report."""

    KPI = "kpi"
    ECONOMIC = "economic"


class ConfidenceLevel(str, Enum):
    """Coarse confidence attached to a lexical extraction."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SuggestionType(str, Enum):
    """Kinds of operator notices.

    Values:
        - MARKET: a country or region was mentioned
        - DECISION: decision language was detected
        - CORRECTION: an answer was overwritten by a spoken correction
        - AUTO_ANSWER: a question was answered from the transcript
    """

    MARKET = "market"
    DECISION = "decision"
    CORRECTION = "correction"
    AUTO_ANSWER = "auto_answer"


class SuggestionPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Extraction(BaseModel):
    """A structured fact pulled from transcript text by a fixed pattern."""

    field: ExtractionField
    value: str
    confidence: ConfidenceLevel
    category: ExtractionCategory
    quote: Optional[str] = Field(
        default=None, description="Surrounding text kept for audit context"
    )


class Uncertainty(BaseModel):
    """A vague-language marker found in the transcript."""

    topic: str
    reason: str
    question: str
    marker: str


class Suggestion(BaseModel):
    """Ephemeral notice shown to the operator during the call."""

    type: SuggestionType
    content: str
    priority: SuggestionPriority


class TranscriptAnalysis(BaseModel):
    """Result of analysing one flushed chunk.

    Ordering of extractions follows pattern-check order (TTD, projects,
    conversion, budget), independent of position in the text.
    """

    extractions: List[Extraction] = Field(default_factory=list)
    uncertainties: List[Uncertainty] = Field(default_factory=list)
    suggestions: List[Suggestion] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.extractions or self.uncertainties or self.suggestions)
