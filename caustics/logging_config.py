"""
logging_config.py - Logger setup for the caustics package

Modules log through ``logging.getLogger(__name__)``; the host attaches
handlers to the package logger once, at startup. Diagnostics go to stderr so
stdout carries only session summaries.
"""

import logging
import sys
from typing import List, Optional

PACKAGE_LOGGER = "caustics"

CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger.

    Parameters
    ----------
    level : int, optional
        Threshold for the package logger and every handler
    log_file : str, optional
        File that receives a timestamped copy of every record (overwritten)

    Returns
    -------
    logging.Logger
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Repeated calls replace the handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    formats = [CONSOLE_FORMAT]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
        formats.append(FILE_FORMAT)

    for handler, fmt in zip(handlers, formats):
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))
        logger.addHandler(handler)

    return logger
