"""Structured logging configuration."""

import logging
import sys
from typing import Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper, add_log_level
from structlog.stdlib import add_logger_name

from insight_service.core.config import settings

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "aiosqlite")


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None):
    """Configure structlog and the stdlib root logger it writes through."""
    log_level = log_level or settings.LOG_LEVEL
    log_format = log_format or settings.LOG_FORMAT
    level = getattr(logging, log_level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        add_log_level,
        add_logger_name,
        structlog.processors.StackInfoRenderer(),
        TimeStamper(fmt="iso"),
    ]

    # The console renderer formats exceptions itself
    if log_format == "json":
        processors += [structlog.processors.dict_tracebacks, JSONRenderer()]
    else:
        processors += [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.contextvars.bind_contextvars(service=settings.SERVICE_NAME)
