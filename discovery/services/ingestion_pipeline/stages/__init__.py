"""
Ingestion pipeline stages.

Each stage encapsulates one step of chunk processing. Stages execute
sequentially in the IngestionPipeline orchestrator.
"""

from .analysis_stage import AnalysisStage
from .correction_stage import CorrectionStage
from .answer_matching_stage import AnswerMatchingStage
from .extraction_persistence_stage import ExtractionPersistenceStage
from .session_log_stage import SessionLogStage

__all__ = [
    "AnalysisStage",
    "CorrectionStage",
    "AnswerMatchingStage",
    "ExtractionPersistenceStage",
    "SessionLogStage",
]
