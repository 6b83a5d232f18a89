"""Local JSON file repository implementation."""

import json
import logging
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import aiofiles
from pydantic import ValidationError

from ..definition import QuizDefinition
from ..errors import InvalidQuizDefinitionError, QuizNotFoundError
from ..models import ScoreResult, SubmissionResult
from .base import QuizDefinitionRepository, SnapshotStore, SubmissionHandler

logger = logging.getLogger(__name__)


class LocalQuizDefinitionRepository(QuizDefinitionRepository):
    """JSON file-based quiz repository.

    The file holds either a single quiz object or a list of quizzes.
    """

    def __init__(self, data_path: str, file_name: str = "quizzes.json"):
        self.file_path = Path(data_path) / file_name

    async def _read_all(self) -> list[dict]:
        """Read all quizzes from file."""
        if not self.file_path.exists():
            return []
        async with aiofiles.open(self.file_path, "r", encoding="utf-8") as f:
            content = await f.read()
        if not content.strip():
            return []
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise InvalidQuizDefinitionError(f"Unable to parse {self.file_path}: {e}") from e
        return data if isinstance(data, list) else [data]

    def _to_model(self, data: dict) -> QuizDefinition:
        """Convert dict to QuizDefinition model."""
        try:
            return QuizDefinition.model_validate(data)
        except ValidationError as e:
            raise InvalidQuizDefinitionError(
                f"Quiz {data.get('slug', '')!r} in {self.file_path} is malformed: {e}"
            ) from e

    async def get_by_slug(self, slug: str) -> QuizDefinition:
        data = await self._read_all()
        for item in data:
            if item.get("slug") == slug:
                return self._to_model(item)
        raise QuizNotFoundError(f"Unable to find quiz {slug!r} in {self.file_path}")

    async def get_first(self) -> QuizDefinition:
        data = await self._read_all()
        if not data:
            raise QuizNotFoundError(f"No quizzes found in {self.file_path}")
        return self._to_model(data[0])


class LocalSubmissionHandler(SubmissionHandler):
    """Appends completed forms to a JSON file."""

    def __init__(self, data_path: str, file_name: str = "submissions.json"):
        self.file_path = Path(data_path) / file_name

    async def _read_all(self) -> list[dict]:
        if not self.file_path.exists():
            return []
        async with aiofiles.open(self.file_path, "r", encoding="utf-8") as f:
            content = await f.read()
            return json.loads(content) if content else []

    async def _write_all(self, data: list[dict]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.file_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=2, default=str))

    async def submit(
        self,
        contact: dict[str, Any],
        answers: dict[str, Any],
        result: Optional[ScoreResult] = None,
    ) -> SubmissionResult:
        record = {
            "id": str(uuid.uuid4()),
            "contact": contact,
            "answers": answers,
            "result": asdict(result) if result else None,
            "submitted_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            data = await self._read_all()
            data.append(record)
            await self._write_all(data)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to store submission in %s: %s", self.file_path, e)
            return SubmissionResult.failed("Your answers could not be saved. Please try again.")

        logger.info(
            "Submission %s recorded (%d answers, result %s)",
            record["id"][:8],
            len(answers),
            result.band_id if result else "-",
        )
        return SubmissionResult.accepted()

    async def get_all(self) -> list[dict]:
        """Get all stored submissions."""
        return await self._read_all()


class FileSnapshotStore(SnapshotStore):
    """Keeps the session snapshot in ``<data_path>/<key>.json``."""

    def __init__(self, data_path: str, key: str):
        self.file_path = Path(data_path) / f"{key}.json"

    def load(self) -> Optional[str]:
        if not self.file_path.exists():
            return None
        try:
            return self.file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.info("Ignoring unreadable snapshot %s: %s", self.file_path, e)
            return None

    def save(self, blob: str) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self.file_path.write_text(blob, encoding="utf-8")

    def clear(self) -> None:
        self.file_path.unlink(missing_ok=True)


class MemorySnapshotStore(SnapshotStore):
    """In-process snapshot storage."""

    def __init__(self, blob: Optional[str] = None):
        self.blob = blob

    def load(self) -> Optional[str]:
        return self.blob

    def save(self, blob: str) -> None:
        self.blob = blob

    def clear(self) -> None:
        self.blob = None
