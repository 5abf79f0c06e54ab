"""
Session report builder.

Aggregates what a listening session produced into a SessionReport.
"""

from typing import Dict, List, Optional, Sequence

import structlog

from discovery.domain.models.extraction import (
    Extraction,
    Suggestion,
    SuggestionPriority,
    Uncertainty,
)
from discovery.domain.models.question import Question, QuestionPriority
from discovery.domain.models.report import ReportMetadata, SessionReport
from discovery.persistence.repositories.extraction_repo import ExtractionRepository

log = structlog.get_logger(__name__)


def group_by_category(extractions: Sequence[Extraction]) -> Dict[str, List[Extraction]]:
    grouped: Dict[str, List[Extraction]] = {}
    for extraction in extractions:
        grouped.setdefault(extraction.category.value, []).append(extraction)
    return grouped


def unique_uncertainties(uncertainties: Sequence[Uncertainty]) -> List[Uncertainty]:
    """One open question per vague marker, first occurrence wins."""
    seen = set()
    result = []
    for uncertainty in uncertainties:
        if uncertainty.marker in seen:
            continue
        seen.add(uncertainty.marker)
        result.append(uncertainty)
    return result


class ReportService:
    def __init__(self, extraction_repo: Optional[ExtractionRepository] = None):
        self.extraction_repo = extraction_repo

    async def build_session_report(
        self,
        session_id: Optional[str],
        extractions: Sequence[Extraction],
        suggestions: Sequence[Suggestion],
        uncertainties: Sequence[Uncertainty],
        questions: Sequence[Question],
        transcript_count: int = 0,
    ) -> SessionReport:
        """
        Build the report for a session.

        Persisted extractions are preferred over the bounded in-memory log
        when a repository and session id are available.

        Args:
            session_id: Listening session id (None if never persisted)
            extractions: In-memory extraction log
            suggestions: In-memory suggestion log
            uncertainties: In-memory uncertainty log
            questions: Current backlog
            transcript_count: Finalized utterances received

        Returns:
            SessionReport
        """
        if self.extraction_repo is not None and session_id:
            rows = await self.extraction_repo.list_for_session(session_id)
            extractions = [
                Extraction(
                    field=row["field"],
                    value=row["value"],
                    confidence=row["confidence"],
                    category=row["category"],
                    quote=row["quote"],
                )
                for row in rows
            ]

        critical_gaps = [
            q
            for q in questions
            if not q.answered and q.priority == QuestionPriority.CRITICAL
        ]

        report = SessionReport(
            session_id=session_id,
            extractions_by_category=group_by_category(extractions),
            high_priority_suggestions=[
                s for s in suggestions if s.priority == SuggestionPriority.HIGH
            ],
            open_questions=unique_uncertainties(uncertainties),
            answered_count=sum(1 for q in questions if q.answered),
            total_questions=len(questions),
            critical_gaps=critical_gaps,
            metadata=ReportMetadata(
                extraction_count=len(extractions),
                transcript_count=transcript_count,
            ),
        )

        log.info(
            "session_report_built",
            session_id=session_id,
            extraction_count=report.metadata.extraction_count,
            critical_gap_count=len(critical_gaps),
        )
        return report
