"""Console logging for the ``remotebrowser`` package.

Setup is idempotent: calling it again only adjusts the level, it never
stacks a second handler. Session tokens are never passed to the logger.
"""

from __future__ import annotations

import logging
import os
import sys

LOGGER_NAME = "remotebrowser"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LEVEL = "WARNING"
ENV_LOG_LEVEL = "REMOTEBROWSER_LOG_LEVEL"

_HANDLER_FLAG = "_remotebrowser_handler"


def parse_level(level_name: str | int | None) -> int:
    """Map a level name (or number) to a logging level; unknown names mean WARNING."""
    if isinstance(level_name, int):
        return level_name
    name = (level_name or "").strip().upper()
    if name == "WARN":
        name = "WARNING"
    if name == "FATAL":
        name = "CRITICAL"
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(level: str | int | None = None, stream=None) -> logging.Logger:
    """Attach one stream handler to the package logger and set its level.

    The level comes from ``level``, then ``REMOTEBROWSER_LOG_LEVEL``, then
    ``WARNING``.
    """
    if level is None:
        level = os.environ.get(ENV_LOG_LEVEL) or DEFAULT_LEVEL
    resolved = parse_level(level)

    logger = logging.getLogger(LOGGER_NAME)
    handler = next((h for h in logger.handlers if getattr(h, _HANDLER_FLAG, False)), None)
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        setattr(handler, _HANDLER_FLAG, True)
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(resolved)
    handler.setLevel(resolved)
    return logger


__all__ = ["LOGGER_NAME", "LOG_FORMAT", "parse_level", "setup_logging"]
