"""Abstract repository interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..definition import QuizDefinition
from ..models import ScoreResult, SubmissionResult


class QuizDefinitionRepository(ABC):
    """Abstract interface for quiz definition storage."""

    @abstractmethod
    async def get_by_slug(self, slug: str) -> QuizDefinition:
        """Get a quiz by slug; raises QuizNotFoundError if absent."""
        pass

    @abstractmethod
    async def get_first(self) -> QuizDefinition:
        """Get the first available quiz; raises QuizNotFoundError if none."""
        pass


class SubmissionHandler(ABC):
    """Abstract interface for receiving completed forms."""

    @abstractmethod
    async def submit(
        self,
        contact: dict[str, Any],
        answers: dict[str, Any],
        result: Optional[ScoreResult] = None,
    ) -> SubmissionResult:
        """Deliver a completed form.

        Returns an accepted result, a rejected result carrying field errors,
        or a failed result carrying a message.
        """
        pass


class SnapshotStore(ABC):
    """Synchronous key-value storage for a single form session snapshot."""

    @abstractmethod
    def load(self) -> Optional[str]:
        """Get the stored snapshot blob, or None if there is none."""
        pass

    @abstractmethod
    def save(self, blob: str) -> None:
        """Store the snapshot blob, replacing any previous one."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored snapshot."""
        pass
