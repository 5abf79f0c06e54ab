"""
Project KPI service.

Applies figure updates to the tracked project and leaves a decision-log row
with the previous and new values for every change.
"""

import uuid
from typing import Any, Dict, Optional

import structlog

from discovery.core.exceptions import PermissionDeniedError, ValidationError
from discovery.domain.models.extraction import Extraction, ExtractionField
from discovery.domain.models.project import Decision, Project
from discovery.domain.models.user import User
from discovery.persistence.repositories.project_repo import ProjectRepository

log = structlog.get_logger(__name__)

# Extraction field -> project column receiving the figure
KPI_COLUMNS: Dict[ExtractionField, str] = {
    ExtractionField.TTD_CURRENT: "ttd_current",
    ExtractionField.TARGET_PROJECTS: "target_projects_month",
    ExtractionField.BUDGET: "budget_total",
}

# Columns only the project owner may change
RESTRICTED_COLUMNS = {"budget_total"}


class ProjectService:
    def __init__(self, project_repo: ProjectRepository):
        self.repo = project_repo

    async def get_current(self) -> Optional[Project]:
        return await self.repo.get_current()

    async def apply_update(
        self, updates: Dict[str, Any], made_by: Optional[User]
    ) -> Optional[Project]:
        """
        Update project figures and log the change as a decision.

        Args:
            updates: Column -> new value
            made_by: Operator responsible for the change (None for anonymous)

        Returns:
            Updated project, or None when no project is tracked

        Raises:
            PermissionDeniedError: Restricted column and operator is not owner
        """
        restricted = RESTRICTED_COLUMNS.intersection(updates)
        if restricted and (made_by is None or not made_by.can_edit_project):
            raise PermissionDeniedError(
                f"Only the project owner can change: {', '.join(sorted(restricted))}"
            )

        project = await self.repo.get_current()
        if project is None:
            log.warning("project_update_skipped", reason="no_project")
            return None

        previous_state = {key: getattr(project, key, None) for key in updates}
        await self.repo.update(project.id, updates)
        await self.repo.add_decision(
            Decision(
                id=str(uuid.uuid4()),
                type="project_update",
                title="Aggiornamento progetto",
                description=f"Modificati: {', '.join(updates)}",
                reasoning="Aggiornamento da discovery",
                made_by=made_by.id if made_by else "stt",
                previous_state=previous_state,
                new_state=dict(updates),
            )
        )

        log.info(
            "project_updated",
            project_id=project.id,
            fields=list(updates),
            made_by=made_by.id if made_by else None,
        )
        return project.model_copy(update=updates)

    async def apply_extraction(
        self, extraction: Extraction, made_by: Optional[User]
    ) -> bool:
        """
        Push a KPI extraction to the project record.

        Fields without a project column are ignored. A restricted field
        pushed by a non-owner is skipped rather than raised.

        Returns:
            True if the project was updated
        """
        column = KPI_COLUMNS.get(extraction.field)
        if column is None:
            return False

        try:
            value = int(float(extraction.value))
        except ValueError as e:
            raise ValidationError(
                f"Non-numeric value for {extraction.field.value}: {extraction.value!r}"
            ) from e

        try:
            project = await self.apply_update({column: value}, made_by)
        except PermissionDeniedError:
            log.info(
                "kpi_push_skipped",
                field=extraction.field.value,
                reason="permission_denied",
            )
            return False
        return project is not None
