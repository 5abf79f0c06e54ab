"""
Pipeline orchestrator for chunk ingestion.

Executes stages sequentially with timing and error logging.
"""

import time
from typing import List

import structlog

from .base import IngestionStage
from .context import IngestionContext
from .result import IngestionResult

log = structlog.get_logger(__name__)


class IngestionPipeline:
    """Runs stages in order over one IngestionContext."""

    def __init__(self, stages: List[IngestionStage]):
        self.stages = stages

    async def execute(self, context: IngestionContext) -> IngestionResult:
        """
        Execute all stages sequentially.

        Raises:
            Exception: If any stage fails (logged with the stage name first)
        """
        start_time = time.perf_counter()

        log.info(
            "pipeline_started",
            session_id=context.session_id,
            chunk_length=len(context.text),
            num_stages=len(self.stages),
        )

        for stage in self.stages:
            stage_start = time.perf_counter()
            try:
                context = await stage.process(context)
            except Exception as e:
                log.error(
                    "stage_failed",
                    stage_name=stage.stage_name,
                    session_id=context.session_id,
                    error=str(e),
                    exc_info=True,
                )
                raise
            context.stage_timings[stage.stage_name] = (
                time.perf_counter() - stage_start
            ) * 1000

        latency_ms = int((time.perf_counter() - start_time) * 1000)

        log.info(
            "pipeline_completed",
            session_id=context.session_id,
            correction_applied=context.correction_applied,
            answered_question_id=context.answered_question_id,
            latency_ms=latency_ms,
            stage_timings=context.stage_timings,
        )

        return self._build_result(context, latency_ms)

    def _build_result(
        self, context: IngestionContext, latency_ms: int
    ) -> IngestionResult:
        analysis = context.analysis
        return IngestionResult(
            session_id=context.session_id,
            text=context.text,
            correction_applied=context.correction_applied,
            answered_question_id=context.answered_question_id,
            corrected_question_id=context.corrected_question_id,
            extraction_count=len(analysis.extractions) if analysis else 0,
            uncertainty_count=len(analysis.uncertainties) if analysis else 0,
            suggestions=(list(analysis.suggestions) if analysis else [])
            + context.emitted_suggestions,
            kpi_fields_pushed=list(context.kpi_fields_pushed),
            latency_ms=latency_ms,
            stage_timings=dict(context.stage_timings),
        )
