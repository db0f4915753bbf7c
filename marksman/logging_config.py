"""
Logging configuration for marksman.

Library modules only create loggers; handlers are attached here, on request
of the embedding application.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union


LOGGER_NAME = "marksman"
OPS_LOG_NAME = "marksman-ops.log"


def enable_debug_mode() -> logging.Handler:
    """Enable debug-level logging to stderr. Safe to call repeatedly."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) is sys.stderr:
            return handler

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    ))
    logger.addHandler(handler)
    return handler


def configure_ops_log(data_dir: Union[str, Path]) -> RotatingFileHandler:
    """Configure a persistent operations log next to the mark files.

    Writes to {data_dir}/marksman-ops.log using a rotating file handler
    (1MB max, 3 backups). Returns the handler so it can be removed again.
    """
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        str(data_dir / OPS_LOG_NAME),
        maxBytes=1_000_000,
        backupCount=3,
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(handler)
    if logger.level == logging.NOTSET or logger.level > logging.INFO:
        logger.setLevel(logging.INFO)

    return handler
