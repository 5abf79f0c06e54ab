"""Roster domain models.

Users are read-only from the analysis core's perspective; their display
names drive mention detection.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class UserRole(str, Enum):
    """Roster roles.

    Values:
        - OWNER: project owner, the only role allowed to edit project figures
        - TEAM_MEMBER: team member whose name is detected in answers
        - CONSULTANT: discovery consultant running the call
    """

    OWNER = "owner"
    TEAM_MEMBER = "team_member"
    CONSULTANT = "consultant"


class User(BaseModel):
    id: str
    name: str
    role: UserRole = UserRole.TEAM_MEMBER
    market_focus: Optional[str] = None

    @property
    def first_name(self) -> str:
        parts = self.name.split()
        return parts[0].lower() if parts else ""

    @property
    def can_edit_project(self) -> bool:
        return self.role == UserRole.OWNER
