"""Logging utilities."""

import logging
import sys
from typing import Optional, TextIO


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log below WARNING while building and reading images
QUIET_LOGGERS = ("pycdlib", "libvirt")


def setup_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> logging.Logger:
    """Attach a single handler to the ``cidata`` logger.

    Records go to ``stream`` (stderr by default) since stdout carries command
    output. Calling it again replaces the handler instead of adding one.
    Third-party loggers are held at WARNING.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logger = logging.getLogger("cidata")
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
