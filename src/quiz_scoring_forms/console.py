"""Terminal presenter for a quiz form session."""

import asyncio
from typing import Callable

from .models import SectionName, SubmitStatus
from .state_machine import FormStateMachine


class ConsoleForm:
    """Paints the form state on a terminal and forwards user actions."""

    def __init__(
        self,
        machine: FormStateMachine,
        input_func: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ):
        self.machine = machine
        self.input_func = input_func
        self.output = output

    async def ask(self, prompt: str) -> str:
        answer = await asyncio.to_thread(self.input_func, prompt)
        return answer.strip()

    def show_header(self) -> None:
        definition = self.machine.definition
        self.output("=" * 50)
        self.output(definition.title or "Quiz")
        self.output("=" * 50)
        if definition.description:
            self.output(definition.description)
        if definition.instructions:
            self.output("")
            self.output(definition.instructions)
        self.output("")

    def show_errors(self) -> None:
        for field_id, message in self.machine.session.errors.items():
            form_field = self.machine.schema.get_field(field_id)
            label = form_field.label if form_field else field_id
            self.output(f"[ERROR] {label}: {message}")

    async def run(self) -> None:
        """Drive the form until it is submitted or the user quits."""
        self.show_header()
        machine = self.machine

        while not machine.session.submitted:
            match machine.session.current_section:
                case SectionName.CONTACT:
                    await self._contact_step()
                case SectionName.QUESTIONS:
                    await self._question_step()
                case SectionName.ANSWERS:
                    if not await self._review_step():
                        return

        self.show_result()

    async def _contact_step(self) -> None:
        machine = self.machine
        for form_field in machine.schema.get_all_contact_fields():
            suffix = "" if form_field.required else " (optional)"
            value = await self.ask(f"{form_field.label}{suffix}: ")
            machine.set_field_value(form_field.id, value)

        if not machine.validate_section():
            self.show_errors()

    async def _question_step(self) -> None:
        machine = self.machine
        question = machine.current_question
        if question is None:
            machine.session.current_section = SectionName.ANSWERS
            return

        section = machine.current_question_section
        position = machine.session.global_question_index + 1
        self.output("")
        if section is not None and section.title:
            self.output(f"[{section.title}]")
        self.output(f"Question {position} of {machine.total_questions}:")
        self.output(question.label)

        options = machine.definition.answer_options
        for number, option in enumerate(options, start=1):
            self.output(f"  {number}. {option.text}")

        choice = await self.ask("Your answer (number, 'b' to go back): ")
        if choice.lower() == "b":
            machine.previous_question()
            return
        if not choice.isdigit() or not 1 <= int(choice) <= len(options):
            self.output(f"[ERROR] Please enter a number between 1 and {len(options)}.")
            return

        await machine.choose_answer(question.id, options[int(choice) - 1].value)

    async def _review_step(self) -> bool:
        machine = self.machine
        questions = machine.schema.question_fields

        self.output("")
        self.output("Review your answers:")
        for number, question in enumerate(questions, start=1):
            label = machine.get_label(machine.session.values.get(question.id)) or "-"
            self.output(f"  {number}. {question.label}")
            self.output(f"     Your answer: {label}")

        command = await self.ask("'s' to submit, a number to change an answer, 'q' to quit: ")
        if command.lower() == "q":
            return False
        if command.lower() == "s":
            status = await machine.validate_all()
            if status == SubmitStatus.FATAL:
                self.output(f"[ERROR] {machine.session.fatal_error}")
            elif status in (SubmitStatus.INVALID, SubmitStatus.REJECTED):
                self.show_errors()
            return True
        if command.isdigit() and 1 <= int(command) <= len(questions):
            index = int(command) - 1
            machine.edit_answer(questions[index].id, questions[index].order - 1)
            return True

        self.output("[ERROR] Unknown command.")
        return True

    def show_result(self) -> None:
        result = self.machine.session.result
        if result is None:
            return
        self.output("")
        self.output("=== Quiz Complete ===")
        self.output(f"Score: {result.percentage}%")
        self.output(result.band_title)
        if result.band_description:
            self.output(result.band_description)
