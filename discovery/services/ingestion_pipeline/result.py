"""Result object for the ingestion pipeline."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from discovery.domain.models.extraction import Suggestion


@dataclass
class IngestionResult:
    """Outcome of processing a single flushed chunk."""

    session_id: Optional[str]
    text: str
    correction_applied: bool
    answered_question_id: Optional[str]
    corrected_question_id: Optional[str]
    extraction_count: int
    uncertainty_count: int
    suggestions: List[Suggestion] = field(default_factory=list)
    kpi_fields_pushed: List[str] = field(default_factory=list)
    latency_ms: int = 0
    stage_timings: Dict[str, float] = field(default_factory=dict)
