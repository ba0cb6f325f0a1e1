"""Directory scanning for the initial sweep."""

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .filters import should_sync

logger = logging.getLogger(__name__)


@dataclass
class LocalFile:
    """Represents a local file eligible for upload."""

    path: Path
    """Absolute path to the file"""

    name: str
    """Base name, used as the remote file name"""

    @classmethod
    def from_path(cls, file_path: Path) -> "LocalFile":
        """Create LocalFile from a path.

        Args:
            file_path: Path to the file

        Returns:
            LocalFile instance
        """
        return cls(path=file_path, name=file_path.name)


class DirectoryScanner:
    """Lists the files directly inside a watched directory.

    Subdirectories are not descended into. Directories, the program's own
    files and hidden files are left out.

    Examples:
        >>> scanner = DirectoryScanner(app_files=("config.json",))
        >>> files = scanner.scan(Path("/home/user/Documents"))
    """

    def __init__(self, app_files: Iterable[str] = ()):
        """Initialize directory scanner.

        Args:
            app_files: Reserved file names that are never returned
        """
        self.app_files = tuple(app_files)

    def scan(self, directory: Path) -> list[LocalFile]:
        """Scan one directory (non-recursive).

        Args:
            directory: Directory to list

        Returns:
            Eligible files sorted by name

        Raises:
            OSError: If the directory cannot be listed
        """
        files = []
        with os.scandir(directory) as entries:
            for entry in entries:
                if not entry.is_file():
                    continue
                full_path = os.path.join(str(directory), entry.name)
                if not should_sync(full_path, self.app_files):
                    logger.debug(f"Skipping excluded file: {full_path}")
                    continue
                files.append(LocalFile.from_path(Path(full_path)))

        files.sort(key=lambda f: f.name)
        return files
