"""
Structured logging setup
structlog with JSON output in production and console output in debug mode
"""

import logging
import sys
from typing import Any, Dict
import structlog
from structlog.types import Processor
import config


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Add application context to every log record

    Args:
        logger: Logger instance
        method_name: Logging method name
        event_dict: Event dictionary

    Returns:
        Dict[str, Any]: The updated event dictionary
    """
    event_dict["app"] = config.settings.app_name
    event_dict["environment"] = config.settings.environment
    return event_dict


def _renderer() -> Processor:
    if config.settings.debug_mode:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging() -> None:
    """
    Configure structlog and the standard logging module

    Records from stdlib loggers (services, uvicorn, sqlalchemy) go through the
    same processor chain as structlog loggers.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_app_context,
    ]

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.INFO,
    )

    logging.getLogger().handlers[0].setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(),
            ],
        )
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a named logger

    Args:
        name: Logger name, usually __name__

    Returns:
        structlog.stdlib.BoundLogger: Configured logger
    """
    return structlog.get_logger(name)
