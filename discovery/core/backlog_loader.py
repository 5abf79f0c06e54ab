"""Backlog loader for the seed YAML file.

Reads a project, its roster and the discovery questions from
config/backlog.yaml. Question order in the file becomes the backlog
sort order.
"""

from pathlib import Path
from typing import List, Optional

import structlog
import yaml
from pydantic import BaseModel, Field

from discovery.core.exceptions import ConfigurationError
from discovery.domain.models.project import Project
from discovery.domain.models.question import Question
from discovery.domain.models.user import User

log = structlog.get_logger(__name__)

DEFAULT_BACKLOG_PATH = Path(__file__).parent.parent.parent / "config" / "backlog.yaml"


class Backlog(BaseModel):
    project: Optional[Project] = None
    users: List[User] = Field(default_factory=list)
    questions: List[Question] = Field(default_factory=list)


def load_backlog(path: Optional[Path] = None) -> Backlog:
    """Load the seed backlog.

    Args:
        path: YAML file (defaults to config/backlog.yaml)

    Returns:
        Validated Backlog

    Raises:
        FileNotFoundError: File does not exist
        ConfigurationError: Invalid structure or duplicate question ids
    """
    path = Path(path or DEFAULT_BACKLOG_PATH)
    if not path.exists():
        raise FileNotFoundError(f"Backlog not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    questions = [
        {**q, "sort_order": q.get("sort_order", i)}
        for i, q in enumerate(data.get("questions") or [])
    ]
    try:
        backlog = Backlog(
            project=data.get("project"),
            users=data.get("users") or [],
            questions=questions,
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid backlog file {path}: {e}") from e

    ids = [q.id for q in backlog.questions]
    duplicates = sorted({qid for qid in ids if ids.count(qid) > 1})
    if duplicates:
        raise ConfigurationError(f"Duplicate question ids in {path}: {duplicates}")

    log.info(
        "backlog_loaded_from_file",
        path=str(path),
        question_count=len(backlog.questions),
        user_count=len(backlog.users),
    )
    return backlog
