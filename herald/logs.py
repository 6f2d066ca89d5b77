"""
Structured logging configuration.

Every herald module logs through a structlog logger bound to its module name
(logger = get_logger(__name__)) and passes context as key/value pairs, e.g.
logger.info("throttled", command="queue", user="1234").

configure() is optional: without it structlog's defaults apply. Hosts call it
once at startup to choose a level and a renderer.
"""
import logging
from enum import Enum

import structlog


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    CONSOLE = "console"
    PLAIN = "plain"


def configure(level="INFO", format=LogFormat.CONSOLE, /):
    """
    Configure structlog for the process.

    Parameters
    - level: str | int
      Minimum level name ("DEBUG", "INFO", ...) or numeric level.
    - format: LogFormat | str
      "console" (colored dev renderer), "json" or "plain" (key=value).

    Raises
    - ValueError for an unknown level name or format.
    """
    if isinstance(level, str):
        if not isinstance(numeric := logging.getLevelName(level.upper()), int):
            raise ValueError(f"unknown log level {level!r}")
        level = numeric

    # The console renderer formats tracebacks itself (through rich when installed).
    match LogFormat(format):
        case LogFormat.JSON:
            tail = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        case LogFormat.PLAIN:
            tail = [structlog.processors.format_exc_info, structlog.processors.KeyValueRenderer(key_order=["event"])]
        case _:
            tail = [structlog.dev.set_exc_info, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *tail,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


def get_logger(name=None):
    """
    Get a structured logger.

    Args:
        name: Optional logger name (usually the module's __name__)

    Returns:
        A structured logger
    """
    return structlog.get_logger(name)


__all__ = (
    "LogFormat",
    "configure",
    "get_logger",
)
