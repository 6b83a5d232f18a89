"""Tests for the local JSON repositories and snapshot stores."""

import json

import pytest

from quiz_scoring_forms.errors import InvalidQuizDefinitionError, QuizNotFoundError
from quiz_scoring_forms.models import ScoreResult
from quiz_scoring_forms.repository import (
    FileSnapshotStore,
    LocalQuizDefinitionRepository,
    LocalSubmissionHandler,
    MemorySnapshotStore,
)

from conftest import quiz_data


@pytest.fixture
def quiz_file(tmp_path):
    path = tmp_path / "quizzes.json"
    path.write_text(json.dumps([quiz_data(slug="first"), quiz_data(slug="second", title="Second")]))
    return path


async def test_get_by_slug(tmp_path, quiz_file):
    repo = LocalQuizDefinitionRepository(str(tmp_path))
    quiz = await repo.get_by_slug("second")
    assert quiz.title == "Second"
    assert quiz.question_count == 2


async def test_get_first(tmp_path, quiz_file):
    repo = LocalQuizDefinitionRepository(str(tmp_path))
    assert (await repo.get_first()).slug == "first"


async def test_single_quiz_file(tmp_path):
    (tmp_path / "one.json").write_text(json.dumps(quiz_data(slug="only")))
    repo = LocalQuizDefinitionRepository(str(tmp_path), "one.json")
    assert (await repo.get_by_slug("only")).slug == "only"


async def test_missing_quiz(tmp_path, quiz_file):
    repo = LocalQuizDefinitionRepository(str(tmp_path))
    with pytest.raises(QuizNotFoundError):
        await repo.get_by_slug("nope")

    empty = LocalQuizDefinitionRepository(str(tmp_path), "absent.json")
    with pytest.raises(QuizNotFoundError):
        await empty.get_first()


async def test_malformed_quiz(tmp_path):
    (tmp_path / "quizzes.json").write_text("[{")
    repo = LocalQuizDefinitionRepository(str(tmp_path))
    with pytest.raises(InvalidQuizDefinitionError):
        await repo.get_first()

    (tmp_path / "quizzes.json").write_text(json.dumps([{"slug": "x", "answerOptions": [{"text": "Yes"}]}]))
    with pytest.raises(InvalidQuizDefinitionError):
        await repo.get_by_slug("x")


async def test_submissions_are_appended(tmp_path):
    handler = LocalSubmissionHandler(str(tmp_path / "out"))
    result = ScoreResult(percentage=50, total=1, max_total=2, band_id="r2", band_title="Middle")

    first = await handler.submit({"qsf_name": "Jane"}, {"qsf_s1-q1": "1"}, result)
    second = await handler.submit({"qsf_name": "Sam"}, {"qsf_s1-q1": "0"})

    assert first.ok and second.ok
    stored = await handler.get_all()
    assert [s["contact"]["qsf_name"] for s in stored] == ["Jane", "Sam"]
    assert stored[0]["result"]["band_id"] == "r2"
    assert stored[1]["result"] is None


async def test_unwritable_submission_store_fails(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    handler = LocalSubmissionHandler(str(blocker))

    result = await handler.submit({}, {})

    assert not result.ok
    assert result.fatal


def test_file_snapshot_store(tmp_path):
    store = FileSnapshotStore(str(tmp_path / "state"), "quiz_scoring_forms_state")
    assert store.load() is None

    store.save('{"a": 1}')
    assert store.file_path.name == "quiz_scoring_forms_state.json"
    assert store.load() == '{"a": 1}'

    store.clear()
    store.clear()
    assert store.load() is None


def test_memory_snapshot_store():
    store = MemorySnapshotStore()
    store.save("blob")
    assert store.load() == "blob"
    store.clear()
    assert store.load() is None
