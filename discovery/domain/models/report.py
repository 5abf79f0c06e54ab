"""End-of-session report model."""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from discovery.domain.models.extraction import Extraction, Suggestion, Uncertainty
from discovery.domain.models.question import Question


class ReportMetadata(BaseModel):
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    extraction_count: int = 0
    transcript_count: int = 0


class SessionReport(BaseModel):
    """Summary handed to the operator when a call ends.

    Extractions are grouped by category (kpi, economic); only high-priority
    suggestions are kept; open questions come from the vague-language log.
    """

    session_id: Optional[str] = None
    extractions_by_category: Dict[str, List[Extraction]] = Field(default_factory=dict)
    high_priority_suggestions: List[Suggestion] = Field(default_factory=list)
    open_questions: List[Uncertainty] = Field(default_factory=list)
    answered_count: int = 0
    total_questions: int = 0
    critical_gaps: List[Question] = Field(default_factory=list)
    metadata: ReportMetadata = Field(default_factory=ReportMetadata)
