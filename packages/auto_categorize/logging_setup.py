"""Logging for the ``auto_categorize`` package.

Library modules only call ``get_logger("auto_categorize.<module>")``; output
is attached by the host application or by the CLI through
:func:`configure_logging`. Until then the package logger carries a
``NullHandler`` so nothing leaks to the root logger's last-resort handler.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

from .config import resolve_log_level

PACKAGE_LOGGER = "auto_categorize"
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def configure_logging(
    level: int | str | None = None, *, stream: IO[str] | None = None
) -> logging.Handler:
    """Attach the package stream handler and set its level.

    The handler is created on the first call; later calls only change the
    level. ``level`` falls back to ``AUTO_CATEGORIZE_LOG_LEVEL`` and then
    ``INFO`` (see :func:`auto_categorize.config.resolve_log_level`), and an
    unknown level name raises ``ValueError`` before anything is attached.
    """

    global _handler
    resolved = resolve_log_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)

    if _handler is None:
        for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
            logger.removeHandler(h)
        _handler = logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_handler)
        # Records stop here; the root logger would print them twice.
        logger.propagate = False

    _handler.setLevel(resolved)
    logger.setLevel(resolved)
    return _handler


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LOG_FORMAT", "PACKAGE_LOGGER", "configure_logging", "get_logger"]
