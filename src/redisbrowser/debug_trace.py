"""Debug tracing utilities for store round-trips and tree rebuilds.

Enable tracing by running with redisbrowser-debug, which sends output to console.
The DEBUG_PERF flag controls whether performance timing is logged.

Usage:
    from .debug_trace import get_logger, perf_timer

    logger = get_logger(__name__)
    logger.debug("Starting operation")

    with perf_timer("list_keys"):
        client.list_keys()
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager

# Global flag to enable/disable performance tracing
DEBUG_PERF = True

# Package logger; module loggers are its children
logger = logging.getLogger("redisbrowser")


def get_logger(name: str) -> logging.Logger:
    """Get a module logger under the package logger."""
    if name == "redisbrowser" or name.startswith("redisbrowser."):
        return logging.getLogger(name)
    return logger.getChild(name)


def setup_debug_logging(force_console: bool = False) -> None:
    """Configure logging for debug mode (console output).

    Call this once at startup. Only the first call configures handlers.

    Args:
        force_console: Log at DEBUG to stdout even if stdout looks unusable.
    """
    if logger.handlers:
        return

    # redisbrowser-debug has a console; a windowed launcher may not
    is_debug = force_console or (sys.stdout is not None and hasattr(sys.stdout, "write"))

    if is_debug:
        logger.setLevel(logging.DEBUG)
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    else:
        logger.setLevel(logging.WARNING)


@contextmanager
def perf_timer(operation: str, key_count: int | None = None):
    """Context manager for timing operations.

    Args:
        operation: Name of the operation being timed
        key_count: Optional key count for context

    Example:
        with perf_timer("rebuild_tree", key_count=len(keys)):
            tree = build_tree(keys)
    """
    if not DEBUG_PERF:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        if key_count is not None:
            logger.debug("PERF: %s (%d keys) took %.2fms", operation, key_count, elapsed_ms)
        else:
            logger.debug("PERF: %s took %.2fms", operation, elapsed_ms)
