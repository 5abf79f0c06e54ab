"""
Chunk ingestion pipeline.

Runs one flushed transcript chunk through analysis, correction handling,
answer matching, extraction persistence and session-log updates.
"""

from .base import IngestionStage
from .context import IngestionContext
from .pipeline import IngestionPipeline
from .result import IngestionResult

__all__ = [
    "IngestionStage",
    "IngestionContext",
    "IngestionPipeline",
    "IngestionResult",
]
