"""Logging setup for the CLI and the MCP server.

Logs go to stderr only: stdout carries the MCP stdio transport.
"""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_ENV = "SCREENSHOT_MCP_LOG_LEVEL"
SIMPLE_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    ``level`` falls back to ``$SCREENSHOT_MCP_LOG_LEVEL`` and then WARNING.
    Calling it again only updates the level.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "WARNING")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger("screenshot_mcp")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(level)
    return logger
