"""Stage 5: append the chunk's outputs to the bounded session logs."""

from typing import TYPE_CHECKING

from ..base import IngestionStage
from discovery.services.session_state import prepend

if TYPE_CHECKING:
    from ..context import IngestionContext


class SessionLogStage(IngestionStage):
    async def process(self, context: "IngestionContext") -> "IngestionContext":
        analysis = context.require_analysis()
        session = context.session

        session.extractions.extend(analysis.extractions)
        session.extraction_count += len(analysis.extractions)
        prepend(session.uncertainties, analysis.uncertainties)
        prepend(session.suggestions, analysis.suggestions + context.emitted_suggestions)
        return context
