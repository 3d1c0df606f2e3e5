"""Colored stderr logging for the openapi_mcp package.

stdout carries the MCP stdio transport, so nothing may be logged there.
Only the package logger is configured; fastmcp and httpx keep their own.
"""

from __future__ import annotations

import logging
import sys

import colorlog

PACKAGE_LOGGER = "openapi_mcp"
FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s%(reset)s %(name)s: %(message)s"


def configure_logging(level_name: str | None = None) -> logging.Logger:
    """Set the package log level and attach the stderr handler on first use."""
    level = getattr(logging, (level_name or "INFO").strip().upper(), None)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level if isinstance(level, int) else logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(colorlog.ColoredFormatter(FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
