"""Multi-step form session state machine.

The form moves through ``contact -> questions -> answers``. Inside the
questions step a single cursor (``global_question_index``) walks the flattened
list of questions across all sections. Choosing an answer while editing a
question from the review screen returns to the review screen instead of
advancing.
"""

import asyncio
import logging
import math
import time
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .config.settings import FormSettings
from .definition import QuizDefinition
from .errors import ScoringConfigurationError
from .models import (
    SECTION_ORDER,
    FieldState,
    FormField,
    FormSection,
    FormSession,
    ScoreResult,
    SectionName,
    SubmitStatus,
)
from .repository.base import SnapshotStore, SubmissionHandler
from .schema import QUESTION_MESSAGE, QuizSchemaBuilder
from .scoring import resolve, resolve_max_answer_value
from .validation import NUMERIC_REGEX, FailureReason, FieldValidator

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "This field is required"
INCOMPLETE_QUIZ_MESSAGE = "This quiz is not available right now."


class SessionSnapshot(BaseModel):
    """Persisted form progress."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    expires_at: float = Field(allow_inf_nan=False)
    values: dict[str, Any] = {}
    current_section: SectionName = SectionName.CONTACT
    current_question_index: int = 0
    global_question_index: int = 0


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and NUMERIC_REGEX.match(value):
        number = float(value)
    else:
        return None
    return number if math.isfinite(number) else None


def same_value(a: Any, b: Any) -> bool:
    """Compare answer values loosely, so that 1, 1.0 and "1" are the same answer."""
    if a is None or b is None:
        return a is b
    number_a, number_b = _as_number(a), _as_number(b)
    if number_a is not None and number_b is not None:
        return number_a == number_b
    return str(a) == str(b)


class FormStateMachine:
    """Manages a quiz form session through its sections."""

    def __init__(
        self,
        definition: QuizDefinition,
        snapshot_store: SnapshotStore,
        submission_handler: SubmissionHandler,
        settings: Optional[FormSettings] = None,
        max_answer_value: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.definition = definition
        self.snapshot_store = snapshot_store
        self.submission_handler = submission_handler
        self.settings = settings or FormSettings()
        self.max_answer_value = max_answer_value
        self.clock = clock

        self.schema = QuizSchemaBuilder(self.settings.plugin_abbrev).build(definition)
        self.validator = FieldValidator()
        self.session = FormSession(
            field_states={field_id: FieldState(field_id) for field_id in self.schema.fields}
        )
        self._transitioning = False

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    @property
    def total_questions(self) -> int:
        return self.schema.total_questions

    @property
    def current_question(self) -> Optional[FormField]:
        questions = self.schema.question_fields
        if 0 <= self.session.global_question_index < len(questions):
            return questions[self.session.global_question_index]
        return None

    @property
    def current_question_section(self) -> Optional[FormSection]:
        question = self.current_question
        if question is None:
            return None
        for section in self.schema.question_sections:
            if section.id == question.section_id:
                return section
        return None

    def all_questions_answered(self) -> bool:
        """Check if every question has a non-empty value."""
        return all(
            not is_empty(self.session.values.get(question.id))
            for question in self.schema.question_fields
        )

    def get_label(self, score: Any) -> Optional[str]:
        """Text of the answer option whose value equals ``score``."""
        for option in self.definition.answer_options:
            if same_value(option.value, score):
                return option.text
        return None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def init(self, snapshot: Optional[Union[str, dict]] = None) -> bool:
        """Restore saved progress; return True if a snapshot was restored.

        ``snapshot`` overrides the snapshot store as the source. Expired or
        unreadable snapshots are discarded. A saved cursor outside the current
        quiz's question range is ignored.
        """
        session = self.session
        restored = False
        cursor_restored = False

        blob = snapshot if snapshot is not None else self.snapshot_store.load()
        if blob is not None:
            parsed = self._parse_snapshot(blob)
            if parsed is None:
                self.snapshot_store.clear()
            elif self.clock() >= parsed.expires_at:
                logger.info("Discarding expired form snapshot")
                self.snapshot_store.clear()
            else:
                for key, value in parsed.values.items():
                    if key in self.schema.fields:
                        session.values[key] = value
                session.current_section = parsed.current_section
                session.current_question_index = parsed.current_question_index

                if 0 <= parsed.global_question_index < self.total_questions:
                    session.global_question_index = parsed.global_question_index
                    cursor_restored = True
                else:
                    logger.info(
                        "Ignoring saved question index %d (quiz has %d questions)",
                        parsed.global_question_index,
                        self.total_questions,
                    )
                restored = True

        for field_id in self.schema.fields:
            session.values.setdefault(field_id, "")

        if not cursor_restored and session.current_section == SectionName.QUESTIONS:
            self._resume_at_first_unanswered()

        return restored

    def _parse_snapshot(self, blob: Union[str, dict]) -> Optional[SessionSnapshot]:
        try:
            if isinstance(blob, str):
                return SessionSnapshot.model_validate_json(blob)
            return SessionSnapshot.model_validate(blob)
        except (ValidationError, ValueError, TypeError) as e:
            logger.info("Discarding unreadable form snapshot: %s", e.__class__.__name__)
            return None

    def _resume_at_first_unanswered(self) -> None:
        for index, question in enumerate(self.schema.question_fields):
            if is_empty(self.session.values.get(question.id)):
                self._move_to(index)
                return
        self._move_to(0)

    def save_snapshot(self) -> None:
        """Persist progress for the configured time-to-live."""
        session = self.session
        snapshot = SessionSnapshot(
            expires_at=self.clock() + self.settings.snapshot_ttl_seconds,
            values=dict(session.values),
            current_section=session.current_section,
            current_question_index=session.current_question_index,
            global_question_index=session.global_question_index,
        )
        self.snapshot_store.save(snapshot.model_dump_json(by_alias=True))

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _move_to(self, index: int) -> None:
        self.session.global_question_index = index
        question = self.current_question
        self.session.current_question_index = question.order - 1 if question else 0

    def next_question(self) -> None:
        """Advance the cursor, or go to the review screen after the last question."""
        if self.session.global_question_index < self.total_questions - 1:
            self._move_to(self.session.global_question_index + 1)
        else:
            self.session.current_section = SectionName.ANSWERS
        self.save_snapshot()

    def previous_question(self) -> None:
        """Step the cursor back; leaving the edited question ends the edit."""
        if self.session.global_question_index > 0:
            self.session.editing_question_id = None
            self._move_to(self.session.global_question_index - 1)
            self.save_snapshot()

    def go_to_question(self, index: int) -> None:
        if not 0 <= index < self.total_questions:
            raise IndexError(f"Question index {index} out of range")
        current = self.current_question
        if current is None or self.schema.question_fields[index].id != current.id:
            self.session.editing_question_id = None
        self._move_to(index)
        self.save_snapshot()

    def next_section(self) -> None:
        """Step forward to the next section; no-op on the last one."""
        session = self.session
        position = SECTION_ORDER.index(session.current_section)
        if position < len(SECTION_ORDER) - 1:
            session.current_section = SECTION_ORDER[position + 1]
            if session.current_section == SectionName.QUESTIONS:
                self._move_to(0)
        self.save_snapshot()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _require_field(self, field_id: str, question: bool = False) -> FormField:
        form_field = self.schema.get_field(field_id)
        if form_field is None or (question and not form_field.is_question):
            kind = "question" if question else "field"
            raise ValueError(f"Unknown {kind}: {field_id}")
        return form_field

    def set_field_value(self, field_id: str, value: Any) -> None:
        """Record raw input for a field, replacing any previous value."""
        form_field = self._require_field(field_id)
        self.session.values[form_field.id] = value
        self.session.field_states[form_field.id].clear()
        self.clear_error(form_field.id)
        self.save_snapshot()

    async def choose_answer(self, question_id: str, value: Any) -> bool:
        """Select an answer for a question and move on.

        Calls arriving while a previous one is still waiting out the debounce
        delay are dropped; returns False for a dropped call.
        """
        question = self._require_field(question_id, question=True)
        if self._transitioning:
            logger.debug("Dropping answer for %s: previous answer still pending", question.id)
            return False

        self._transitioning = True
        try:
            await asyncio.sleep(self.settings.answer_debounce_seconds)
            session = self.session
            key = question.id

            # Re-choosing the stored answer while editing just closes the edit
            if session.editing_question_id == key and same_value(session.values.get(key), value):
                self.finish_edit()
                return True

            session.values[key] = value
            session.field_states[key].clear()
            self.clear_error(key)

            if self.all_questions_answered():
                session.current_section = SectionName.ANSWERS
                session.editing_question_id = None
                self.save_snapshot()
            else:
                self.next_question()
            return True
        finally:
            self._transitioning = False

    def edit_answer(self, question_id: str, index: Optional[int] = None) -> None:
        """Reopen a question from the review screen."""
        question = self._require_field(question_id, question=True)
        session = self.session
        session.editing_question_id = question.id
        self._move_to(self.schema.question_index(question.id))
        if index is not None:
            session.current_question_index = index
        session.current_section = SectionName.QUESTIONS
        self.save_snapshot()

    def finish_edit(self) -> None:
        self.session.current_section = SectionName.ANSWERS
        self.session.editing_question_id = None
        self.save_snapshot()

    def clear_error(self, field_id: str) -> None:
        form_field = self.schema.get_field(field_id)
        key = form_field.id if form_field else field_id
        self.session.errors.pop(key, None)

    # ------------------------------------------------------------------
    # Validation and submission
    # ------------------------------------------------------------------

    def _fields_in(self, section: SectionName) -> list[FormField]:
        match section:
            case SectionName.CONTACT:
                return self.schema.get_all_contact_fields()
            case SectionName.QUESTIONS:
                return self.schema.question_fields
            case _:
                return []

    def _check_field(self, form_field: FormField) -> Optional[str]:
        """Validate one field; return its error message or None."""
        value = self.session.values.get(form_field.id)
        result = self.validator.validate(form_field, value, self.session.field_states[form_field.id])

        if not result.ok:
            if result.reason == FailureReason.REQUIRED:
                return QUESTION_MESSAGE if form_field.is_question else REQUIRED_MESSAGE
            return form_field.message

        if form_field.is_question and self.definition.answer_options:
            if self.get_label(value) is None:
                return form_field.message
        return None

    def _check_fields(self, fields: list[FormField]) -> dict[str, str]:
        errors = {}
        for form_field in fields:
            message = self._check_field(form_field)
            if message is not None:
                errors[form_field.id] = message
        return errors

    def validate_section(self) -> bool:
        """Validate the active section and advance if it has no errors."""
        session = self.session
        session.errors = self._check_fields(self._fields_in(session.current_section))

        if session.errors:
            logger.debug("Section %s has %d error(s)", session.current_section.value, len(session.errors))
            self.save_snapshot()
            return False

        if session.current_section != SectionName.ANSWERS:
            self.next_section()
        return True

    def _jump_to_first_error(self) -> None:
        first_key = next(iter(self.session.errors))
        form_field = self.schema.get_field(first_key)
        if form_field is not None and form_field.is_question:
            self.session.current_section = SectionName.QUESTIONS
            self._move_to(self.schema.question_index(form_field.id))
        else:
            self.session.current_section = SectionName.CONTACT

    def _fail(self, message: str) -> SubmitStatus:
        self.session.fatal_error = message
        self.save_snapshot()
        return SubmitStatus.FATAL

    async def validate_all(self, force_answers_on_error_origin: bool = False) -> SubmitStatus:
        """Validate every section and hand a clean form to the submission handler.

        With ``force_answers_on_error_origin`` a fully answered quiz goes back
        to the review screen whatever else is wrong, for when the server has
        already refused an otherwise complete submission.
        """
        session = self.session
        session.errors = self._check_fields(
            self.schema.get_all_contact_fields() + self.schema.question_fields
        )

        if force_answers_on_error_origin and self.all_questions_answered():
            session.current_section = SectionName.ANSWERS
            self.save_snapshot()
            return SubmitStatus.REVIEW

        if session.errors:
            logger.debug("Form has %d error(s)", len(session.errors))
            self._jump_to_first_error()
            self.save_snapshot()
            return SubmitStatus.INVALID

        if self.total_questions == 0 or not self.definition.answer_options:
            logger.error("Quiz %r has no questions or no answer options", self.definition.slug)
            return self._fail(INCOMPLETE_QUIZ_MESSAGE)

        try:
            result = self._score()
        except ScoringConfigurationError as e:
            logger.error("Cannot score quiz %r: %s", self.definition.slug, e)
            return self._fail(INCOMPLETE_QUIZ_MESSAGE)

        contact = {
            f.id: session.field_states[f.id].value for f in self.schema.get_all_contact_fields()
        }
        answers = {q.id: session.values[q.id] for q in self.schema.question_fields}

        submission = await self.submission_handler.submit(contact, answers, result)

        if submission.ok:
            session.result = result
            session.fatal_error = None
            session.submitted = True
            self.snapshot_store.clear()
            return SubmitStatus.SUBMITTED

        if submission.errors:
            session.errors = {}
            for key, message in submission.errors.items():
                form_field = self.schema.get_field(key)
                session.errors[form_field.id if form_field else key] = message
            self._jump_to_first_error()
            self.save_snapshot()
            return SubmitStatus.REJECTED

        return self._fail(submission.fatal or "Submission failed. Please try again.")

    def _score(self) -> ScoreResult:
        max_answer_value = resolve_max_answer_value(self.definition, self.max_answer_value)

        answer_values = []
        for question in self.schema.question_fields:
            state = self.session.field_states[question.id]
            if not state.has_score:
                try:
                    state.set_score(float(self.session.values[question.id]))
                except ValueError:
                    raise ScoringConfigurationError(
                        f"Answer to {question.id} is not numeric."
                    ) from None
            answer_values.append(state.score)

        return resolve(answer_values, self.definition.result_bands, max_answer_value)
