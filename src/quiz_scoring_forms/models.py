"""Domain models for Quiz Scoring Forms."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional

from .errors import ScoreAlreadySetError


class SectionName(str, Enum):
    """Top-level steps of the form, in the order they are visited."""
    CONTACT = "contact"
    QUESTIONS = "questions"
    ANSWERS = "answers"


SECTION_ORDER = [SectionName.CONTACT, SectionName.QUESTIONS, SectionName.ANSWERS]


@dataclass(frozen=True)
class FormField:
    """A single input of the form: a contact datum or a quiz question."""
    id: str
    section_id: str
    order: int
    html_type: str
    label: str
    placeholder: str
    data_type: str  # string, int, float, number, bool, email, phone, name
    min_length: Optional[float]
    max_length: Optional[float]
    message: str
    required: bool
    is_question: bool
    ascii_only: bool = False
    reject_foreign_scripts: bool = False
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class FormSection:
    """An ordered group of fields. The contact section always has order 0."""
    id: str
    title: str
    slug: str
    order: int
    field_ids: tuple[str, ...]
    is_question_section: bool
    fields: tuple[FormField, ...] = ()


_UNSET = object()


class FieldState:
    """Mutable value and score of one field, kept apart from its definition.

    Both slots start unset and move to set exactly once. A second value is
    ignored; a second score is a programming error.
    """

    def __init__(self, field_id: str):
        self.field_id = field_id
        self._value: Any = _UNSET
        self._score: Any = _UNSET

    @property
    def has_value(self) -> bool:
        return self._value is not _UNSET

    @property
    def has_score(self) -> bool:
        return self._score is not _UNSET

    @property
    def value(self) -> Any:
        return None if self._value is _UNSET else self._value

    @property
    def score(self) -> Any:
        return None if self._score is _UNSET else self._score

    def set_value(self, value: Any) -> Any:
        """Store the value unless one is already stored; return what is stored."""
        if self._value is _UNSET:
            self._value = value
        return self._value

    def set_score(self, score: Any) -> Any:
        if self._score is not _UNSET:
            raise ScoreAlreadySetError(
                f"Score for form field {self.field_id} has already been set and cannot be changed."
            )
        self._score = score
        return self._score

    def clear(self) -> None:
        self._value = _UNSET
        self._score = _UNSET


@dataclass
class FormSchema:
    """Ordered field and section model derived from a quiz definition."""
    contact_section: FormSection
    contact_fields: list[FormField]
    question_sections: list[FormSection]
    fields: dict[str, FormField] = field(default_factory=dict)
    namespace: str = ""

    def get_all_contact_fields(self) -> list[FormField]:
        return sorted(self.contact_fields, key=lambda f: f.order)

    def get_all_question_sections(self) -> list[FormSection]:
        return sorted(self.question_sections, key=lambda s: s.order)

    @property
    def question_fields(self) -> list[FormField]:
        """All questions flattened in section order, then within-section order."""
        flattened = []
        for section in self.get_all_question_sections():
            flattened.extend(sorted(section.fields, key=lambda f: f.order))
        return flattened

    @property
    def total_questions(self) -> int:
        return sum(len(section.field_ids) for section in self.question_sections)

    def get_field(self, field_id: str) -> Optional[FormField]:
        """Look up a field by its namespaced id or by the id it was authored with."""
        if field_id in self.fields:
            return self.fields[field_id]
        return self.fields.get(f"{self.namespace}_{field_id}")

    def question_index(self, field_id: str) -> Optional[int]:
        """Global 0-based position of a question, or None if not a question."""
        target = self.get_field(field_id)
        if target is None:
            return None
        for index, question in enumerate(self.question_fields):
            if question.id == target.id:
                return index
        return None


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring a finished quiz."""
    percentage: int
    total: float
    max_total: float
    band_id: str
    band_title: str
    band_description: str = ""


@dataclass
class SubmissionResult:
    """Answer of the submission collaborator.

    ``ok`` means accepted; ``errors`` maps field ids to messages for a
    rejected submission; ``fatal`` carries a message for any other failure.
    """
    ok: bool = False
    errors: dict[str, str] = field(default_factory=dict)
    fatal: Optional[str] = None

    @classmethod
    def accepted(cls) -> "SubmissionResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, errors: dict[str, str]) -> "SubmissionResult":
        return cls(errors=dict(errors))

    @classmethod
    def failed(cls, message: str) -> "SubmissionResult":
        return cls(fatal=message)


class SubmitStatus(Enum):
    """Outcome of a full-form validation and submission attempt."""
    INVALID = auto()
    REVIEW = auto()
    SUBMITTED = auto()
    REJECTED = auto()
    FATAL = auto()


@dataclass
class FormSession:
    """Runtime state of one form fill-in, read by the presentation layer."""
    values: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    current_section: SectionName = SectionName.CONTACT
    current_question_index: int = 0  # within the question's own section
    global_question_index: int = 0  # across all question sections
    editing_question_id: Optional[str] = None
    field_states: dict[str, FieldState] = field(default_factory=dict)
    result: Optional[ScoreResult] = None
    fatal_error: Optional[str] = None
    submitted: bool = False
