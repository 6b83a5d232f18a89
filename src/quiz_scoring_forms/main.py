"""Entry point for Quiz Scoring Forms."""

import asyncio
import logging
import sys

from dotenv import load_dotenv

from .config.settings import Settings
from .console import ConsoleForm
from .errors import QuizScoringFormsError
from .repository import FileSnapshotStore, LocalQuizDefinitionRepository, LocalSubmissionHandler
from .state_machine import FormStateMachine

logger = logging.getLogger(__name__)


async def run(settings: Settings) -> None:
    """Load the configured quiz and run it on the terminal."""
    storage = settings.storage
    quiz_repo = LocalQuizDefinitionRepository(storage.data_path, storage.quiz_file)

    if settings.quiz_slug:
        definition = await quiz_repo.get_by_slug(settings.quiz_slug)
    else:
        definition = await quiz_repo.get_first()

    for problem in definition.authoring_errors():
        logger.warning("Quiz %r: %s", definition.slug, problem)

    machine = FormStateMachine(
        definition=definition,
        snapshot_store=FileSnapshotStore(storage.data_path, settings.form.storage_key),
        submission_handler=LocalSubmissionHandler(storage.data_path, storage.submissions_file),
        settings=settings.form,
        max_answer_value=settings.scoring.max_answer_value,
    )
    if machine.init():
        logger.info("Resuming saved progress")

    await ConsoleForm(machine).run()


def main() -> None:
    """Start a quiz session."""
    # Load environment variables
    load_dotenv()

    # Initialize settings
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(run(settings))
    except QuizScoringFormsError as e:
        logger.error("%s", e)
        print(f"Unable to load the quiz: {e}")
        sys.exit(1)
    except (KeyboardInterrupt, EOFError):
        print("\nSession closed. Your progress has been saved.")


if __name__ == "__main__":
    main()
