"""Application entry point for the exam server."""

from __future__ import annotations

from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.exam_manager import ExamManager
from exam_app.core.services.admin_auth import AdminAuthenticator
from exam_app.server.api_server import run_api_server
from exam_app.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, load the question set and serve the API."""
    logger = configure_logging()
    logger.info("Starting exam server…")

    exam_manager = ExamManager()
    exam_manager.reload_questions()
    exam_manager.prepare_storage()

    logger.info("Student API available at http://%s:%d/api/questions", DEFAULT_HOST, DEFAULT_PORT)
    run_api_server(exam_manager, AdminAuthenticator(), host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
