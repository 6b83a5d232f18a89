"""Builds the ordered field and section model of a quiz form."""

import logging

from .definition import ContactFieldDefinition, QuestionSectionDefinition, QuizDefinition
from .models import FormField, FormSchema, FormSection

logger = logging.getLogger(__name__)

CONTACT_SECTION_ID = "contact_fields"

# Declared UI input type -> data type the validator casts to
CONTACT_DATA_TYPES = {
    "text": "string",
    "email": "email",
    "tel": "phone",
    "number": "int",
}

CONTACT_MIN_LENGTH = 2
CONTACT_MAX_LENGTH = 50
QUESTION_MIN_LENGTH = 1
QUESTION_MAX_LENGTH = 10
QUESTION_MESSAGE = "Please select an answer"


class QuizSchemaBuilder:
    """Turns a quiz definition into contact fields and question sections.

    Every field and section id is prefixed with ``<namespace>_`` so that it
    cannot collide with other identifiers on the host page.
    """

    def __init__(self, namespace: str = "qsf"):
        self.namespace = namespace

    def namespaced(self, id: str) -> str:
        return f"{self.namespace}_{id}"

    def build(self, definition: QuizDefinition) -> FormSchema:
        fields: dict[str, FormField] = {}

        contact_section_id = self.namespaced(CONTACT_SECTION_ID)
        contact_fields = []
        for index, contact in enumerate(definition.contact_fields):
            form_field = self._contact_field(contact_section_id, contact, index + 1)
            self._register(fields, form_field)
            contact_fields.append(form_field)

        contact_section = FormSection(
            id=contact_section_id,
            title="Contact",
            slug="contact",
            order=0,
            field_ids=tuple(f.id for f in contact_fields),
            is_question_section=False,
            fields=tuple(contact_fields),
        )

        question_sections = []
        for index, section in enumerate(definition.question_sections):
            question_sections.append(self._question_section(fields, section, index + 1))

        if not question_sections or not definition.answer_options:
            logger.warning(
                "Quiz %r has %d question section(s) and %d answer option(s)",
                definition.slug or definition.title,
                len(question_sections),
                len(definition.answer_options),
            )

        return FormSchema(
            contact_section=contact_section,
            contact_fields=contact_fields,
            question_sections=question_sections,
            fields=fields,
            namespace=self.namespace,
        )

    def _register(self, fields: dict[str, FormField], form_field: FormField) -> None:
        if form_field.id in fields:
            raise ValueError(f"Duplicate form field id: {form_field.id}")
        fields[form_field.id] = form_field

    def _contact_field(
        self, section_id: str, contact: ContactFieldDefinition, order: int
    ) -> FormField:
        data_type = CONTACT_DATA_TYPES.get(contact.type, "string")

        if data_type == "email":
            message = "Please enter a valid email address"
        elif data_type == "phone":
            message = "Please enter a valid phone number"
        else:
            message = f"Please enter your {contact.name.lower()}"

        return FormField(
            id=self.namespaced(contact.id),
            section_id=section_id,
            order=order,
            html_type=contact.type,
            label=contact.name,
            placeholder=contact.placeholder,
            data_type=data_type,
            min_length=CONTACT_MIN_LENGTH,
            max_length=CONTACT_MAX_LENGTH,
            message=message,
            required=contact.required,
            is_question=False,
            ascii_only=True,
            reject_foreign_scripts=contact.type in ("text", "textarea"),
            options=tuple(contact.options),
        )

    def _question_section(
        self,
        fields: dict[str, FormField],
        section: QuestionSectionDefinition,
        order: int,
    ) -> FormSection:
        section_id = self.namespaced(section.id)

        questions = []
        for index, question in enumerate(section.questions):
            form_field = FormField(
                id=self.namespaced(question.id),
                section_id=section_id,
                order=index + 1,
                html_type="radio",
                label=question.text,
                placeholder=question.text,
                data_type="string",
                min_length=QUESTION_MIN_LENGTH,
                max_length=QUESTION_MAX_LENGTH,
                message=QUESTION_MESSAGE,
                required=True,
                is_question=True,
            )
            self._register(fields, form_field)
            questions.append(form_field)

        return FormSection(
            id=section_id,
            title=section.title,
            slug=section.slug,
            order=order,
            field_ids=tuple(q.id for q in questions),
            is_question_section=True,
            fields=tuple(questions),
        )
