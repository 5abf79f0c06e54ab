"""
Stage 4: persist extractions and push KPI figures.

Runs whatever the earlier stages decided. Store failures are logged and the
chunk keeps going.
"""

from typing import TYPE_CHECKING, Optional

import structlog

from ..base import IngestionStage
from discovery.persistence.repositories.extraction_repo import ExtractionRepository
from discovery.services.project_service import ProjectService

if TYPE_CHECKING:
    from ..context import IngestionContext

log = structlog.get_logger(__name__)


class ExtractionPersistenceStage(IngestionStage):
    def __init__(
        self,
        extraction_repo: Optional[ExtractionRepository] = None,
        project_service: Optional[ProjectService] = None,
    ):
        self.extraction_repo = extraction_repo
        self.projects = project_service

    async def process(self, context: "IngestionContext") -> "IngestionContext":
        analysis = context.require_analysis()
        operator = context.session.operator

        for extraction in analysis.extractions:
            if self.extraction_repo is not None and context.session_id:
                try:
                    extraction_id = await self.extraction_repo.save(
                        context.session_id, extraction
                    )
                    context.persisted_extraction_ids.append(extraction_id)
                except Exception as e:
                    log.error(
                        "store_write_failed",
                        table="stt_extractions",
                        field=extraction.field.value,
                        error=str(e),
                    )

            if self.projects is not None:
                try:
                    if await self.projects.apply_extraction(extraction, operator):
                        context.kpi_fields_pushed.append(extraction.field.value)
                except Exception as e:
                    log.error(
                        "store_write_failed",
                        table="projects",
                        field=extraction.field.value,
                        error=str(e),
                    )

        return context
