"""Application entry point for the QuizRoom API server."""

from __future__ import annotations

from quizroom.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quizroom.core.quiz_manager import QuizManager
from quizroom.server.api_server import run_api_server
from quizroom.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging and serve the quiz API until interrupted."""
    logger = configure_logging()
    logger.info("Starting QuizRoom API on %s:%d", DEFAULT_HOST, DEFAULT_PORT)

    quiz_manager = QuizManager()
    run_api_server(quiz_manager=quiz_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
