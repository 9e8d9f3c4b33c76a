"""Structured logging setup.

Only the persistence layer and the CLI emit log events. The SM-2 calculation
and the due-set selector are pure and never log.
"""

from typing import Optional

import logging
import structlog
from quiz_srs.config import settings


def configure_logging(level: Optional[str] = None, json: Optional[bool] = None) -> None:
    """Configure stdlib logging and structlog for the whole application.

    Args:
        level: Log level name, defaults to ``settings.log_level``
        json: Render JSON lines when True, console output when False.
            Defaults to ``settings.log_json``.
    """
    level_name = (level or settings.log_level).upper()
    use_json = settings.log_json if json is None else json

    # Message-only format: structlog renders the full line itself
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)
