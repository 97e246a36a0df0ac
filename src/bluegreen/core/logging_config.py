"""Process-wide logging setup for the bluegreen manager."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "paramiko")


def configure_logging(level: str = "INFO", verbose: bool = False) -> logging.Logger:
    """Configure root logging and return the package logger.

    ``verbose`` forces DEBUG regardless of ``level``.
    """
    resolved = logging.DEBUG if verbose else logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logger = logging.getLogger("bluegreen")
    logger.debug("Logging configured with level %s", logging.getLevelName(resolved))
    return logger
