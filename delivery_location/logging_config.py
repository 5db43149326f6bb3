"""Structured logging configuration."""

from logging import DEBUG, ERROR, INFO, WARNING, Handler, Logger, StreamHandler, getLogger
from typing import cast

import structlog
from structlog import dev, processors, stdlib
from structlog.stdlib import BoundLogger

LOG_LEVELS: dict[str, int] = {
    "debug": DEBUG,
    "info": INFO,
    "warning": WARNING,
    "error": ERROR,
}


def configure_logging(level: str = "info", testing: bool = False) -> None:
    """Configure structlog on top of the standard logging module.

    Args:
        level: One of the LOG_LEVELS names.
        testing: Render human-readable console output instead of JSON.
    """
    log_level = LOG_LEVELS.get(level.lower(), INFO)

    root_logger: Logger = getLogger()
    root_logger.setLevel(log_level)

    handler: Handler = StreamHandler()
    handler.setLevel(log_level)

    shared_processors = [
        stdlib.add_logger_name,
        stdlib.add_log_level,
        stdlib.PositionalArgumentsFormatter(),
        processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S.%f"),
    ]

    structlog.configure(
        processors=[
            stdlib.filter_by_level,
            *shared_processors,
            stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=stdlib.LoggerFactory(),
        wrapper_class=stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = stdlib.ProcessorFormatter(
        processor=dev.ConsoleRenderer() if testing else processors.JSONRenderer(),
        foreign_pre_chain=shared_processors,
    )
    handler.setFormatter(formatter)

    # Replace handlers so repeated calls do not duplicate output.
    root_logger.handlers = [handler]


def get_logger(**initial_values) -> BoundLogger:
    """Return a structured logger carrying *initial_values*.

    The logger is assembled on first use, so module-level loggers pick up
    whatever configure_logging() installs later.
    """
    return cast(BoundLogger, structlog.get_logger(**initial_values))
