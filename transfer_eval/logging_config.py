"""Console logging setup shared by the API and scripts."""

import logging
import sys

LOGGER_NAME = "transfer_eval"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single console handler to the package logger.

    Safe to call more than once; existing handlers are replaced so that
    reloads (uvicorn --reload, tests) do not duplicate output.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)
    logger.propagate = False

    return logger
