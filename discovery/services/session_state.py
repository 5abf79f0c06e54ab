"""
Mutable state of one listening session.

Owned by the session controller and handed by reference to every
ingestion stage. Nothing here is module-global.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, List, Optional

from discovery.core.config import LogLimitsConfig
from discovery.domain.models.extraction import Extraction, Suggestion, Uncertainty
from discovery.domain.models.session import LastAnswered, TranscriptEntry
from discovery.domain.models.user import User


def prepend(log: Deque, items: Iterable) -> None:
    """Put items at the head of a bounded log, keeping their order."""
    for item in reversed(list(items)):
        log.appendleft(item)


@dataclass
class SessionState:
    """Ephemeral session data.

    Transcript and extraction logs keep the most recent entries last;
    uncertainty and suggestion logs keep the most recent entries first.
    """

    limits: LogLimitsConfig = field(default_factory=LogLimitsConfig)
    session_id: Optional[str] = None
    listening: bool = False
    operator: Optional[User] = None
    roster: List[User] = field(default_factory=list)
    last_answered: Optional[LastAnswered] = None
    transcript_count: int = 0
    extraction_count: int = 0
    transcripts: Deque[TranscriptEntry] = field(init=False)
    extractions: Deque[Extraction] = field(init=False)
    uncertainties: Deque[Uncertainty] = field(init=False)
    suggestions: Deque[Suggestion] = field(init=False)

    def __post_init__(self):
        self.reset_logs()

    def reset_logs(self) -> None:
        self.transcripts = deque(maxlen=self.limits.transcript_limit)
        self.extractions = deque(maxlen=self.limits.extraction_limit)
        self.uncertainties = deque(maxlen=self.limits.uncertainty_limit)
        self.suggestions = deque(maxlen=self.limits.suggestion_limit)
        self.transcript_count = 0
        self.extraction_count = 0

    @property
    def operator_name(self) -> Optional[str]:
        return self.operator.name if self.operator else None
