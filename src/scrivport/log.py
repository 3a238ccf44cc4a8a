"""Logging configuration using structlog on top of the standard logging module.

Library modules only call ``get_logger``; output is set up by the CLI through
``configure_logging``. Until then events go to the ``scrivport`` stdlib logger,
which carries a ``NullHandler`` and otherwise follows the host's setup.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer
from structlog.stdlib import ProcessorFormatter, add_log_level, add_logger_name

ROOT_LOGGER = "scrivport"

_handler: logging.Handler | None = None

_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    add_log_level,
    add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def _get_level_no(level_name: str) -> int:
    return _LOG_LEVELS.get(level_name.upper(), logging.WARNING)


def configure_logging(level: str = "WARNING", json_output: bool = False) -> None:
    """Send ``scrivport`` events to stderr.

    Calling it again replaces the handler installed by the previous call.

    Args:
        level: Minimum level shown (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render one JSON object per line instead of console text
    """
    global _handler

    renderer: Any = JSONRenderer() if json_output else ConsoleRenderer(colors=False)
    formatter = ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_SHARED_PROCESSORS,
    )

    root_logger = logging.getLogger(ROOT_LOGGER)
    if _handler is not None:
        root_logger.removeHandler(_handler)
        _handler.close()

    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(formatter)
    root_logger.addHandler(_handler)
    root_logger.setLevel(_get_level_no(level))
    root_logger.propagate = False


def get_logger(name: str) -> Any:
    """Get a structlog logger bound to ``name`` (typically ``__name__``).

    The logger is wrapped directly, so structlog's global configuration is
    left to the host application.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )
