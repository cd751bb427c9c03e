"""structlog setup.

Learn: Every module does ``logger = structlog.get_logger()`` and logs
dotted event names with keyword context. This module wires the
processor chain once at startup: contextvars are merged first, so the
request_id bound by RequestIdMiddleware and the subject_id bound by the
auth gate show up on every line logged during a request.
"""

import logging

import structlog

from taskboard.config import Settings


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.environment == "development"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
