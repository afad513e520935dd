"""Logging configuration for orglsp."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_ROOT_LOGGER = "orglsp"


def configure_logging(*, level: str = "INFO", log_file: Path | None = None) -> None:
    """
    Configure the orglsp logger.

    The server speaks LSP over stdout in stdio mode, so records go to stderr
    or to a file, never to stdout.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to log file. If None, logs to stderr.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(log_level)
    logger.handlers.clear()

    if log_file is not None:
        handler: logging.Handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(formatter)
    handler.setLevel(log_level)
    logger.addHandler(handler)

    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name under the orglsp namespace.

    Args:
        name: Logger name (will be prefixed with 'orglsp.').

    Returns:
        Logger instance.
    """
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")
