"""Base stage class for the ingestion pipeline."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import IngestionContext


class IngestionStage(ABC):
    """
    Abstract base class for pipeline stages.

    Each stage implements process(), which reads and updates the
    IngestionContext and returns it.
    """

    @abstractmethod
    async def process(self, context: "IngestionContext") -> "IngestionContext":
        """
        Process this stage, update context, return modified context.

        Args:
            context: Chunk context with all accumulated state

        Returns:
            Modified context with stage results added
        """
        pass

    @property
    def stage_name(self) -> str:
        """Return the stage name for logging."""
        return self.__class__.__name__
