"""Stage 1: lexical analysis of the chunk."""

from typing import TYPE_CHECKING

from ..base import IngestionStage
from discovery.services.text_analyzer import analyze_transcript

if TYPE_CHECKING:
    from ..context import IngestionContext


class AnalysisStage(IngestionStage):
    """Populates IngestionContext.analysis."""

    async def process(self, context: "IngestionContext") -> "IngestionContext":
        context.analysis = analyze_transcript(context.text)
        return context
