"""File management utilities for capture and replay artifacts."""

import os
import logging

logger = logging.getLogger(__name__)


def create_dir(path):
    """Create a directory (and its parents) if it doesn't exist.

    Args:
        path (str): Directory path
    """
    logger.debug(f"Creating directory: {os.path.abspath(path)}")
    if os.path.isdir(path):
        logger.debug(f"Directory {path} already exists")
        return
    os.makedirs(path, exist_ok=True)
    logger.info(f"Setting up directory {path}")


def remove_file(path):
    """Delete a file, ignoring it if it is already gone.

    Args:
        path (str): File path

    Returns:
        bool: True if a file was removed
    """
    try:
        os.remove(path)
        logger.debug(f"Removed {path}")
        return True
    except FileNotFoundError:
        logger.debug(f"Nothing to remove at {path}")
        return False


def is_nonempty_file(path):
    """Check that ``path`` is a regular file with at least one byte."""
    return bool(path) and os.path.isfile(path) and os.path.getsize(path) > 0


def file_size(path):
    """Size of ``path`` in bytes, 0 when the file does not exist."""
    try:
        return os.path.getsize(path)
    except OSError:
        return 0
