"""
Ingestion context carried through the pipeline stages.

Holds the chunk being processed, a reference to the session state it
mutates, and the outputs each stage leaves for the next.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, TYPE_CHECKING

from discovery.domain.models.extraction import Suggestion, TranscriptAnalysis

if TYPE_CHECKING:
    from discovery.services.ai_extraction_service import AIExtractionResult
    from discovery.services.session_state import SessionState


@dataclass
class IngestionContext:
    """Per-chunk pipeline state.

    Stage outputs:
    - AnalysisStage: analysis
    - CorrectionStage: correction_applied, corrected_question_id
    - AnswerMatchingStage: ai_result, answered_question_id
    - ExtractionPersistenceStage: persisted_extraction_ids, kpi_fields_pushed
    - SessionLogStage: appends to the session logs
    """

    text: str
    now_ms: float
    session: "SessionState"

    analysis: Optional[TranscriptAnalysis] = None
    correction_applied: bool = False
    corrected_question_id: Optional[str] = None
    ai_result: Optional["AIExtractionResult"] = None
    answered_question_id: Optional[str] = None
    persisted_extraction_ids: List[str] = field(default_factory=list)
    kpi_fields_pushed: List[str] = field(default_factory=list)
    # Suggestions raised by answer writes (correction, auto_answer)
    emitted_suggestions: List[Suggestion] = field(default_factory=list)
    stage_timings: Dict[str, float] = field(default_factory=dict)

    @property
    def session_id(self) -> Optional[str]:
        return self.session.session_id

    def require_analysis(self) -> TranscriptAnalysis:
        if self.analysis is None:
            raise RuntimeError("analysis accessed before AnalysisStage completed")
        return self.analysis
