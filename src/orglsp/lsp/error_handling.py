"""Error containment for LSP handlers and extraction steps.

A completion engine that fails on a keystroke is worse than one that
under-suggests, so every layer converts unexpected exceptions into its empty
result and logs them instead.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import ParamSpec, TypeVar

P = ParamSpec("P")
R = TypeVar("R")


def wrap_handler(
    *,
    logger: logging.Logger,
    feature_name: str,
    default_factory: Callable[[], R],
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator that wraps an LSP feature handler with error handling.

    Catches exceptions, logs them, and returns a default value to prevent
    the LSP server from crashing.

    Args:
        logger: Logger instance for error logging.
        feature_name: Name of the LSP feature (for error messages).
        default_factory: Callable that returns a default value on error.

    Returns:
        Decorator function.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.exception("Error in %s handler", feature_name)
                return default_factory()

        return wrapper

    return decorator


def guard_extraction(
    *,
    logger: logging.Logger,
    default_factory: Callable[[], R],
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator for a single extraction tier or documentation section.

    The wrapped step contributes ``default_factory()`` when it raises, so the
    remaining tiers still run.

    Args:
        logger: Logger for the failure record.
        default_factory: Produces the empty contribution.

    Returns:
        Decorator function.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.exception("Extraction step %s failed", func.__name__)
                return default_factory()

        return wrapper

    return decorator
