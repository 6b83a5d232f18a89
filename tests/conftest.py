"""Shared fixtures for quiz form tests."""

import pytest

from quiz_scoring_forms.config.settings import FormSettings
from quiz_scoring_forms.definition import QuizDefinition
from quiz_scoring_forms.models import SubmissionResult
from quiz_scoring_forms.repository import MemorySnapshotStore, SubmissionHandler
from quiz_scoring_forms.state_machine import FormStateMachine


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingSubmissionHandler(SubmissionHandler):
    """Records submissions and answers with a preset result."""

    def __init__(self, response: SubmissionResult = None):
        self.response = response or SubmissionResult.accepted()
        self.calls = []

    async def submit(self, contact, answers, result=None):
        self.calls.append({"contact": contact, "answers": answers, "result": result})
        return self.response


def quiz_data(**overrides) -> dict:
    data = {
        "slug": "simple",
        "title": "Simple quiz",
        "description": "A quiz",
        "instructions": "Answer everything",
        "maxAnswerValue": 1,
        "contactFields": [
            {"id": "name", "name": "Name", "type": "text", "required": True},
            {"id": "email", "name": "Email", "type": "email", "required": True},
        ],
        "questionSections": [
            {
                "id": "s1",
                "title": "First",
                "questions": [
                    {"id": "s1-q1", "text": "Question one"},
                    {"id": "s1-q2", "text": "Question two"},
                ],
            }
        ],
        "answerOptions": [
            {"text": "Yes", "value": "1"},
            {"text": "No", "value": "0"},
        ],
        "resultBands": [
            {"title": "Low", "minPercentage": 0, "maxPercentage": 39},
            {"title": "Middle", "minPercentage": 40, "maxPercentage": 60},
            {"title": "High", "minPercentage": 61, "maxPercentage": 100},
        ],
    }
    data.update(overrides)
    return data


TWO_SECTIONS = [
    {
        "id": "s1",
        "title": "First",
        "questions": [
            {"id": "s1-q1", "text": "One"},
            {"id": "s1-q2", "text": "Two"},
        ],
    },
    {
        "id": "s2",
        "title": "Second",
        "questions": [
            {"id": "s2-q1", "text": "Three"},
            {"id": "s2-q2", "text": "Four"},
            {"id": "s2-q3", "text": "Five"},
        ],
    },
]


@pytest.fixture
def definition() -> QuizDefinition:
    return QuizDefinition.model_validate(quiz_data())


@pytest.fixture
def two_section_definition() -> QuizDefinition:
    return QuizDefinition.model_validate(quiz_data(questionSections=TWO_SECTIONS))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture
def handler() -> RecordingSubmissionHandler:
    return RecordingSubmissionHandler()


@pytest.fixture
def settings() -> FormSettings:
    return FormSettings(answer_debounce_seconds=0.01)


@pytest.fixture
def make_machine(store, handler, settings, clock):
    """Build a state machine around the shared store, handler and clock."""

    def factory(definition: QuizDefinition, **kwargs) -> FormStateMachine:
        kwargs.setdefault("snapshot_store", store)
        kwargs.setdefault("submission_handler", handler)
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("clock", clock)
        return FormStateMachine(definition=definition, **kwargs)

    return factory


@pytest.fixture
def machine(make_machine, definition) -> FormStateMachine:
    form = make_machine(definition)
    form.init()
    return form


@pytest.fixture
def build_quiz():
    """Build a QuizDefinition from the default quiz data with overrides."""

    def factory(**overrides) -> QuizDefinition:
        return QuizDefinition.model_validate(quiz_data(**overrides))

    return factory


@pytest.fixture
def handler_returning():
    """Build a recording submission handler answering with ``response``."""
    return RecordingSubmissionHandler
