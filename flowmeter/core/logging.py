"""Logging utilities for the flowmeter service."""
import logging
import sys

from flowmeter.core.config import Settings
from flowmeter.core.request_context import get_request_id

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[%(filename)s:%(lineno)d] - request_id=%(request_id)s - %(message)s"
)


def configure_logging(
    settings: Settings, *,
    logger_name: str = "flowmeter",
) -> logging.Logger:
    """Configure the root logger and return the application logger.

    Args:
        settings: Application settings containing log level and optional log file.
        logger_name: Name of the logger to retrieve.

    Returns:
        Configured logger instance.
    """

    log_level = getattr(logging, settings.log_level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=handlers,
    )

    old_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs) -> logging.LogRecord:
        record = old_factory(*args, **kwargs)
        record.request_id = get_request_id() or "system"
        return record

    logging.setLogRecordFactory(record_factory)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    #logging.getLogger("flowmeter.services.clock_driver").setLevel(logging.DEBUG)

    logger.debug("Logging configured with level %s", logging.getLevelName(log_level))
    return logger
