"""
Utility functions for the cmdtree CLI application.
"""
import logging
import sys
from typing import Optional

from cmdtree.constants import LOG_FORMAT
from cmdtree.models import Platform

_log_handler: Optional[logging.Handler] = None


def verbosity_to_level(verbosity: int) -> int:
    """
    Map a ``-v`` count to a logging level.

    Args:
        verbosity: Number of times ``-v`` was given.

    Returns:
        WARNING for 0, INFO for 1, DEBUG for 2 or more.
    """
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(verbosity: int = 0) -> None:
    """
    Send cmdtree's log records to stderr.

    Only the ``cmdtree`` logger is configured, so the root logger of an
    embedding application is left alone. Calling this again replaces the
    previous handler.

    Args:
        verbosity: Number of times ``-v`` was given; 0 removes the handler.
    """
    global _log_handler
    logger = logging.getLogger("cmdtree")
    if _log_handler is not None:
        logger.removeHandler(_log_handler)
        _log_handler = None

    if verbosity <= 0:
        logger.setLevel(logging.NOTSET)
        return

    logger.setLevel(verbosity_to_level(verbosity))

    _log_handler = logging.StreamHandler()
    _log_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(_log_handler)


def current_platform() -> Optional[Platform]:
    """
    Get the platform cmdtree is running on.

    Returns:
        The matching Platform, or None for an operating system commands
        cannot be restricted to.
    """
    if sys.platform.startswith("linux"):
        return Platform.LINUX
    if sys.platform == "darwin":
        return Platform.MACOS
    if sys.platform in ("win32", "cygwin"):
        return Platform.WINDOWS
    return None
