"""Logging configuration for Benchmate.

Everything logs through structlog key/value events. Output goes to stderr so
it never interleaves with assistant replies on stdout.
"""

import logging
import sys
from typing import IO

import structlog
from structlog.typing import Processor

from benchmate.config import Config, get_config

# Third-party loggers that are chatty at INFO (one line per HTTP request).
_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def _renderer(fmt: str, stream: IO[str]) -> Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    colors = bool(getattr(stream, "isatty", lambda: False)())
    return structlog.dev.ConsoleRenderer(colors=colors)


def configure_logging(config: Config | None = None, stream: IO[str] | None = None) -> None:
    """Configure structured logging from the ``logging`` config section.

    Args:
        config: Configuration to read; defaults to the global config
        stream: Output stream; defaults to stderr
    """
    config = config or get_config()
    stream = stream or sys.stderr

    log_level = getattr(logging, config.logging.level.upper(), logging.WARNING)
    fmt = config.logging.format.strip().lower()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(fmt, stream),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )

    library_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


log = get_logger(__name__)
