"""sqlnb - run SQL and sqllogictest notebooks against a pooled database."""

from __future__ import annotations

import logging

__version__ = "0.1.0"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Send sqlnb records (translation warnings, pool lifecycle) to stderr.

    Unknown level names fall back to INFO. Only the first call attaches a
    handler; later calls just change the level.
    """
    logger = logging.getLogger("sqlnb")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
