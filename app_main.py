"""Application entry point for the AccessExam server."""

from __future__ import annotations

import argparse
from functools import partial
import logging
from pathlib import Path
import socket

from exam_app.constants.about import APP_NAME, APP_VERSION
from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.services.question_loader import DirectoryQuestionSource
from exam_app.core.settings import SessionSettings
from exam_app.server.api_server import SessionRegistry, run_api_server
from exam_app.utils.logging_config import configure_logging


def _determine_client_url(port: int) -> str:
    """Best-effort determination of the local IP for the client-facing URL."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"{APP_NAME} exam session server")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--questions-dir",
        type=Path,
        default=Path("exams"),
        help="Directory holding one <exam_id>.txt question file per exam.",
    )
    parser.add_argument(
        "--speech-text",
        action="store_true",
        help="Strip markdown and spell out symbols in announcements for speech engines.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _build_registry(args: argparse.Namespace) -> SessionRegistry:
    return SessionRegistry(
        DirectoryQuestionSource(args.questions_dir.resolve()),
        settings_factory=partial(SessionSettings, prepare_speech=args.speech_text),
    )


def main(argv: list[str] | None = None) -> None:
    """Initialize logging and serve the exam API."""
    args = _parse_args(argv)
    logger = configure_logging(logging.DEBUG if args.debug else logging.INFO)
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)

    registry = _build_registry(args)
    logger.info("Reading exams from %s", args.questions_dir.resolve())
    logger.info("Exam API available at %s", _determine_client_url(args.port))
    run_api_server(registry, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
