"""Structured JSON logging configuration."""

import logging
import sys
from typing import Iterable
from pythonjsonlogger import jsonlogger

# uvicorn's own loggers, routed through the same JSON handler as the exporter
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _json_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        timestamp=True
    ))
    return handler


def setup_logger(
    name: str = "tsm_exporter",
    level: str = "INFO",
    server_loggers: Iterable[str] = ()
) -> logging.Logger:
    """
    Configure structured JSON logging.

    Collector and executor loggers are children of the returned logger, so
    target and collector context passed through ``extra`` ends up as JSON
    fields.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        server_loggers: Additional logger names (e.g. SERVER_LOGGERS) given
            the same handler and level

    Returns:
        logging.Logger: Configured logger instance
    """
    log_level = getattr(logging, level.upper())
    logger = logging.getLogger(name)

    for log in [logger] + [logging.getLogger(n) for n in server_loggers]:
        log.setLevel(log_level)
        # Remove existing handlers to avoid duplicates
        log.handlers = [_json_handler()]
        log.propagate = False

    return logger
