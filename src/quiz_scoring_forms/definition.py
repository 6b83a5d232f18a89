"""Quiz definition document supplied by the authoring side.

The document is read-only for the form engine. Keys may be given in camelCase
(as stored by the authoring tool) or snake_case.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel


def generate_slug(title: str) -> str:
    """Build a URL-safe slug from a section title."""
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


class DefinitionModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContactFieldDefinition(DefinitionModel):
    """A contact input (name, email, phone...) collected before the quiz."""
    id: str
    name: str
    placeholder: str = ""
    type: str = "text"  # text, email, tel, textarea, checkbox, select, radio
    required: bool = False
    options: list[str] = []


class QuestionDefinition(DefinitionModel):
    id: str = ""
    text: str


class QuestionSectionDefinition(DefinitionModel):
    id: str = ""
    title: str = ""
    slug: str = ""
    questions: list[QuestionDefinition] = []


class AnswerOptionDefinition(DefinitionModel):
    """A selectable answer shared by every question."""
    id: str = ""
    text: str
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value):
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @property
    def numeric_value(self) -> float:
        """Score contributed by this answer; raises ValueError if not numeric."""
        return float(self.value)


class ResultBandDefinition(DefinitionModel):
    """Outcome shown when the percentage score falls within [min, max]."""
    id: str = ""
    title: str
    description: str = ""
    min_percentage: float
    max_percentage: float


class QuizDefinition(DefinitionModel):
    """A complete authored quiz."""
    slug: str = ""
    title: str = ""
    description: str = ""
    instructions: str = ""
    contact_fields: list[ContactFieldDefinition] = []
    question_sections: list[QuestionSectionDefinition] = []
    answer_options: list[AnswerOptionDefinition] = []
    result_bands: list[ResultBandDefinition] = []
    max_answer_value: Optional[float] = None

    @model_validator(mode="after")
    def _assign_default_ids(self) -> "QuizDefinition":
        for section_index, section in enumerate(self.question_sections):
            section_id = f"s{section_index + 1}"
            if not section.id:
                section.id = section_id
            if not section.slug:
                section.slug = generate_slug(section.title)
            for question_index, question in enumerate(section.questions):
                if not question.id:
                    question.id = f"{section_id}-q{question_index + 1}"

        for index, answer in enumerate(self.answer_options):
            if not answer.id:
                answer.id = f"a{index + 1}"

        for index, band in enumerate(self.result_bands):
            if not band.id:
                band.id = f"r{index + 1}"

        return self

    @property
    def question_count(self) -> int:
        return sum(len(section.questions) for section in self.question_sections)

    def authoring_errors(self) -> list[str]:
        """Check the authoring rules a publishable quiz must satisfy.

        Returns a list of human-readable problems; an empty list means the
        quiz is complete. Nothing here is enforced by the form engine itself.
        """
        errors = []

        if not self.description.strip():
            errors.append("Description is required.")

        if not self.instructions.strip():
            errors.append("Instructions are required.")

        if not self.question_sections:
            errors.append("At least one section with a question is required.")
        elif self.question_count == 0:
            errors.append("At least one question is required in a section.")

        if not self.answer_options:
            errors.append("At least one answer option is required.")

        if not self.result_bands:
            errors.append("At least one result is required.")

        for band in self.result_bands:
            if band.min_percentage > band.max_percentage:
                errors.append(
                    f"Result '{band.title}' has a minimum percentage above its maximum."
                )

        return errors
