"""Logger helpers shared by all schemata modules."""

from __future__ import annotations

import logging

LIBRARY_LOGGER = "schemata"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Silent unless the application configures logging
logging.getLogger(LIBRARY_LOGGER).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return a logger for a module, e.g. ``get_logger(__name__)``."""
    return logging.getLogger(name)


def configure_logging(level: str | int = "INFO", fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Attach a stream handler to the library logger and set its level.

    Calling this more than once only updates the level and format.
    """
    logger = logging.getLogger(LIBRARY_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    handler = next(
        (h for h in logger.handlers if isinstance(h, logging.StreamHandler)),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler()
        logger.addHandler(handler)
    handler.setFormatter(logging.Formatter(fmt))
    return logger
