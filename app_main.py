"""Application entry point for the Quizzy API."""

from __future__ import annotations

import sys

from quizzy.constants.about import APP_NAME, APP_VERSION
from quizzy.core.errors import SourceUnavailableError
from quizzy.core.question_importer import source_for_path
from quizzy.core.quiz_manager import QuizManager
from quizzy.core.services.result_store import JsonLinesResultStore
from quizzy.server.api_server import run_api_server
from quizzy.utils.logging_config import configure_logging
from quizzy.utils.settings import AppSettings


def build_manager(settings: AppSettings) -> QuizManager:
    """Wire the quiz manager to the configured question bank and result file."""
    manager = QuizManager(
        store=JsonLinesResultStore(settings.results_path),
        question_source=source_for_path(settings.questions_path),
        quiz_length=settings.quiz_length,
        leaderboard_size=settings.leaderboard_size,
        history_limit=settings.history_limit,
    )
    if settings.shuffle_seed is not None:
        manager.set_shuffle_seed(settings.shuffle_seed)
    return manager


def main() -> None:
    """Load settings and the question bank, then serve the API."""
    settings = AppSettings.from_env()
    logger = configure_logging(settings.log_level)
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)

    quiz_manager = build_manager(settings)
    try:
        loaded = quiz_manager.reload_questions()
    except SourceUnavailableError as exc:
        logger.error("Question bank unavailable: %s", exc)
        sys.exit(1)
    logger.info("Loaded %d questions from %s", loaded, settings.questions_path)
    logger.info("API available at http://%s:%d/", settings.host, settings.port)

    run_api_server(quiz_manager, host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
