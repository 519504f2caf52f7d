"""Logging setup for the sheet export service.

Modules log through ``logging.getLogger(__name__)``; this module only
installs a handler on the package logger.

Usage:
    from sheetjson.utils.logging import configure_logging

    configure_logging("DEBUG")
"""

import logging
import sys

PACKAGE_LOGGER = "sheetjson"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
) -> logging.Logger:
    """Configure the package logger.

    Calling this more than once only updates the level and format; a
    second handler is never added.

    Args:
        level: Log level (int or string like "INFO").
        format_string: Custom format string (uses default if None).

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    formatter = logging.Formatter(
        fmt=format_string or DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT,
    )

    handler = next(
        (h for h in logger.handlers if getattr(h, "_sheetjson_handler", False)),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler._sheetjson_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    handler.setFormatter(formatter)
    return logger
