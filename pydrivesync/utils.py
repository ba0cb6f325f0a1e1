"""Utility functions for PyDriveSync."""

import os
from datetime import datetime
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

DEFAULT_FOLDER_NAME: str = "BckDocs"

DEFAULT_WATCH_PATH: str = "."

# How long the watch loop waits on its queue before re-checking the stop token
DEFAULT_POLL_INTERVAL: float = 0.5

# A path written continuously is still flushed after this many debounce windows
DEBOUNCE_MAX_DELAY_FACTOR: int = 10


# =============================================================================
# Timestamp utilities
# =============================================================================


def format_sync_time(now: Optional[datetime] = None) -> str:
    """Format a human-readable local timestamp for the sync record.

    Args:
        now: Time to format (defaults to the current local time)

    Returns:
        Timestamp string such as "2025-01-15 10:30:00"
    """
    return (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")


# =============================================================================
# Path utilities
# =============================================================================


def split_event_path(path: str) -> tuple[str, str]:
    """Split a changed file path into its directory and base name.

    Args:
        path: Path reported by the watcher

    Returns:
        Tuple of (directory, file name)
    """
    directory, name = os.path.split(path)
    return directory, name


def normalize_watch_path(raw: Optional[str]) -> str:
    """Turn user input into an absolute watch directory.

    Args:
        raw: Path as typed by the user (blank means the current directory)

    Returns:
        Absolute, normalized path
    """
    value = (raw or "").strip() or DEFAULT_WATCH_PATH
    return os.path.abspath(os.path.expanduser(value))
