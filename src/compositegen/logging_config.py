"""
Logging Configuration
Sets up the package logger shared by both command-line tools.
"""
import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "compositegen"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


class _MaxLevelFilter(logging.Filter):
    """Lets through only records strictly below the given level."""

    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def _attach(logger: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configures the 'compositegen' logger.

    Progress (below WARNING) goes to stdout, warnings and errors to stderr.
    Calling it again replaces the handlers of the previous call.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    progress = logging.StreamHandler(sys.stdout)
    progress.addFilter(_MaxLevelFilter(logging.WARNING))
    _attach(logger, progress, level, formatter)

    _attach(logger, logging.StreamHandler(sys.stderr), max(level, logging.WARNING), formatter)

    if log_file:
        _attach(logger, logging.FileHandler(log_file, mode='w', encoding='utf-8'), level, formatter)

    logger.debug("Logging initialized.")
