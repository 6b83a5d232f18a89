"""Repository layer for data access."""

from .base import QuizDefinitionRepository, SnapshotStore, SubmissionHandler
from .local import (
    FileSnapshotStore,
    LocalQuizDefinitionRepository,
    LocalSubmissionHandler,
    MemorySnapshotStore,
)

__all__ = [
    "QuizDefinitionRepository",
    "SnapshotStore",
    "SubmissionHandler",
    "FileSnapshotStore",
    "LocalQuizDefinitionRepository",
    "LocalSubmissionHandler",
    "MemorySnapshotStore",
]
