"""Exclusion rules for files that must never be uploaded."""

import os
from collections.abc import Iterable


def is_app_file(path: str, app_files: Iterable[str]) -> bool:
    """Check whether a path names one of the program's own files.

    The check is a suffix match on the full path, so ``/docs/config.json``
    and ``/docs/myconfig.json`` both match ``config.json``.

    Args:
        path: File path (absolute or relative)
        app_files: Reserved file names

    Returns:
        True if the path ends with a reserved name
    """
    return any(name and path.endswith(name) for name in app_files)


def is_hidden_file(path: str) -> bool:
    """Check whether a path is hidden or lives under a hidden directory.

    Args:
        path: File path

    Returns:
        True if any path segment starts with a dot
    """
    if os.path.basename(path).startswith("."):
        return True
    separators = {os.sep, "/"}
    if os.altsep:
        separators.add(os.altsep)
    return any(f"{sep}." in path for sep in separators)


def should_sync(path: str, app_files: Iterable[str]) -> bool:
    """Return True if a file passes both the app-file and hidden-file filters."""
    return not is_app_file(path, app_files) and not is_hidden_file(path)
