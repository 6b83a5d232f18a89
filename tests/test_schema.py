"""Tests for the quiz definition document and the schema builder."""

import pytest

from quiz_scoring_forms.definition import QuizDefinition, generate_slug
from quiz_scoring_forms.schema import QuizSchemaBuilder


def test_contact_fields_are_ordered_and_namespaced(definition):
    schema = QuizSchemaBuilder("qsf").build(definition)

    fields = schema.get_all_contact_fields()
    assert [f.id for f in fields] == ["qsf_name", "qsf_email"]
    assert [f.order for f in fields] == [1, 2]
    assert all(not f.is_question for f in fields)
    assert schema.contact_section.order == 0
    assert not schema.contact_section.is_question_section
    assert schema.contact_section.field_ids == ("qsf_name", "qsf_email")


@pytest.mark.parametrize(
    "html_type,data_type",
    [("text", "string"), ("email", "email"), ("tel", "phone"), ("number", "int"), ("select", "string")],
)
def test_contact_type_mapping(build_quiz, html_type, data_type):
    quiz = build_quiz(contactFields=[{"id": "c", "name": "C", "type": html_type}])
    form_field = QuizSchemaBuilder().build(quiz).get_field("c")
    assert form_field.data_type == data_type
    assert form_field.html_type == html_type


def test_contact_field_messages(definition):
    schema = QuizSchemaBuilder().build(definition)
    assert schema.get_field("name").message == "Please enter your name"
    assert schema.get_field("email").message == "Please enter a valid email address"


def test_free_text_fields_reject_foreign_scripts(build_quiz):
    quiz = build_quiz(
        contactFields=[
            {"id": "note", "name": "Note", "type": "textarea"},
            {"id": "email", "name": "Email", "type": "email"},
        ]
    )
    schema = QuizSchemaBuilder().build(quiz)
    assert schema.get_field("note").reject_foreign_scripts
    assert not schema.get_field("email").reject_foreign_scripts
    assert schema.get_field("email").ascii_only


def test_question_sections(two_section_definition):
    schema = QuizSchemaBuilder("qsf").build(two_section_definition)

    sections = schema.get_all_question_sections()
    assert [s.id for s in sections] == ["qsf_s1", "qsf_s2"]
    assert [s.order for s in sections] == [1, 2]
    assert all(s.is_question_section for s in sections)
    assert [f.id for f in sections[1].fields] == ["qsf_s2-q1", "qsf_s2-q2", "qsf_s2-q3"]

    question = sections[1].fields[2]
    assert question.order == 3
    assert question.html_type == "radio"
    assert question.data_type == "string"
    assert (question.min_length, question.max_length) == (1, 10)
    assert question.required
    assert question.is_question
    assert question.section_id == "qsf_s2"


def test_flattened_question_index(two_section_definition):
    schema = QuizSchemaBuilder().build(two_section_definition)
    assert schema.total_questions == 5
    assert [q.label for q in schema.question_fields] == ["One", "Two", "Three", "Four", "Five"]
    assert schema.question_index("s2-q1") == 2
    assert schema.question_index("qsf_s2-q3") == 4
    assert schema.question_index("name") is None
    assert schema.question_index("missing") is None


def test_namespace_is_configurable(definition):
    schema = QuizSchemaBuilder("quiz").build(definition)
    assert schema.get_field("quiz_name") is schema.get_field("name")
    assert schema.get_field("qsf_name") is None


def test_duplicate_ids_are_rejected(build_quiz):
    quiz = build_quiz(
        contactFields=[{"id": "s1-q1", "name": "Clash", "type": "text"}],
    )
    with pytest.raises(ValueError):
        QuizSchemaBuilder().build(quiz)


def test_empty_quiz_still_builds(build_quiz):
    schema = QuizSchemaBuilder().build(build_quiz(questionSections=[], answerOptions=[]))
    assert schema.question_sections == []
    assert schema.total_questions == 0


def test_definition_defaults():
    quiz = QuizDefinition.model_validate(
        {
            "question_sections": [
                {"title": "Team & Process!", "questions": [{"text": "A"}, {"text": "B"}]},
                {"title": "Second  one", "questions": [{"text": "C"}]},
            ],
            "answer_options": [{"text": "Yes", "value": 1}],
            "result_bands": [{"title": "All", "min_percentage": 0, "max_percentage": 100}],
        }
    )
    first, second = quiz.question_sections
    assert (first.id, first.slug) == ("s1", "team-process")
    assert [q.id for q in first.questions] == ["s1-q1", "s1-q2"]
    assert (second.id, second.slug) == ("s2", "second-one")
    assert quiz.answer_options[0].id == "a1"
    assert quiz.answer_options[0].value == "1"
    assert quiz.result_bands[0].id == "r1"
    assert quiz.question_count == 3


def test_generate_slug():
    assert generate_slug("  Hello -- World  ") == "hello-world"


def test_authoring_errors(build_quiz):
    assert build_quiz().authoring_errors() == []

    broken = build_quiz(
        description="",
        questionSections=[{"title": "Empty"}],
        answerOptions=[],
        resultBands=[{"title": "Upside down", "minPercentage": 80, "maxPercentage": 20}],
    )
    errors = broken.authoring_errors()
    assert "Description is required." in errors
    assert "At least one question is required in a section." in errors
    assert "At least one answer option is required." in errors
    assert any("Upside down" in e for e in errors)
