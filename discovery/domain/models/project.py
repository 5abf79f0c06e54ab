"""Project KPI domain models.

Project figures are pushed from transcript extractions; every update leaves
a Decision row holding the previous and new state.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Project(BaseModel):
    id: str
    name: str
    current_projects_month: int = 0
    target_projects_month: int = 0
    target_timeline_months: int = 0
    ttd_current: Optional[int] = None
    ttd_target: Optional[int] = None
    budget_total: Optional[int] = None
    margin_target: Optional[float] = None
    strategic_notes: Optional[str] = None


class Decision(BaseModel):
    """Audit row for a project change."""

    id: str
    type: str
    title: str
    description: str
    reasoning: str
    made_by: str
    previous_state: Optional[Dict[str, Any]] = None
    new_state: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
