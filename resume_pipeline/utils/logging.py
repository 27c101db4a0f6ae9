"""Console logging for the API process, the CLI and the queue workers.

Module loggers come from ``logging.getLogger(__name__)`` and sit under the
``resume_pipeline`` logger, which owns a single named stderr handler.
"""

import logging
import sys
from typing import TextIO

LOGGER_NAME = "resume_pipeline"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "resume_pipeline.console"

# Chatty client libraries used by the optimizer and the queue
_THIRD_PARTY_LOGGERS = ("LiteLLM", "httpx", "httpcore")


def _resolve_level(level: str | None) -> int:
    if level is None:
        return logging.INFO
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _console_handler(logger: logging.Logger) -> logging.Handler | None:
    for handler in logger.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return handler
    return None


def configure_logging(
    level: str | None = None,
    *,
    stream: TextIO | None = None,
    format_string: str = LOG_FORMAT,
    date_format: str = DATE_FORMAT,
) -> logging.Logger:
    """Configure and return the ``resume_pipeline`` logger.

    Safe to call repeatedly: the console handler is installed once and later
    calls only change levels. The LLM and HTTP client loggers never go
    below WARNING, so request chatter does not drown job logs.

    Args:
        level: Log level name. Defaults to INFO; unknown names fall back to INFO.
        stream: Stream for the console handler on first install (stderr by default).
        format_string: Format string for log messages.
        date_format: Format string for timestamps.

    Returns:
        The application logger.
    """
    log_level = _resolve_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    handler = _console_handler(logger)
    if handler is None:
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(format_string, datefmt=date_format))
        logger.addHandler(handler)
        # litellm attaches handlers to the root logger
        logger.propagate = False
    handler.setLevel(log_level)

    for name in _THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    return logger


def reset_logging() -> None:
    """Drop every handler and restore propagation (used by tests)."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    for name in _THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)
