"""Persistent sync configuration.

The sync configuration is the only state that survives a restart: the name
of the destination folder in Drive, the time of the last successful upload
and the list of watched local directories. It is loaded once at startup and
written back after every change.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from ..exceptions import SyncConfigError, SyncConfigNotFoundError
from ..utils import format_sync_time

logger = logging.getLogger(__name__)


@dataclass
class SyncConfig:
    """Destination folder, last sync time and watched paths."""

    destination_folder_name: str = ""
    """Name of the Drive folder that receives every synced file"""

    last_sync_timestamp: str = ""
    """Human-readable local time of the last successful upload or update"""

    watched_paths: list[str] = field(default_factory=list)
    """Absolute local directories, in the order they were added"""

    @property
    def is_configured(self) -> bool:
        return bool(self.destination_folder_name)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "folderName": self.destination_folder_name,
            "lastUpdate": self.last_sync_timestamp,
            "folderToWatch": list(self.watched_paths),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncConfig":
        """Create SyncConfig from dictionary.

        ``folderToWatch`` may be a single string or a list of strings;
        empty entries are dropped.
        """
        raw_paths = data.get("folderToWatch") or []
        if isinstance(raw_paths, str):
            raw_paths = [raw_paths]
        return cls(
            destination_folder_name=data.get("folderName") or "",
            last_sync_timestamp=data.get("lastUpdate") or "",
            watched_paths=[str(p) for p in raw_paths if p],
        )


def load_sync_config(path: Path) -> SyncConfig:
    """Load the sync configuration.

    Args:
        path: Path to the JSON config file

    Returns:
        Loaded SyncConfig

    Raises:
        SyncConfigNotFoundError: If the file does not exist yet
        SyncConfigError: If the file cannot be read or parsed
    """
    if not path.exists():
        raise SyncConfigNotFoundError(str(path))

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SyncConfigError(f"Failed to load sync config {path}: {e}") from e

    if not isinstance(data, dict):
        raise SyncConfigError(f"Sync config {path} is not a JSON object")

    sync_config = SyncConfig.from_dict(data)
    logger.debug(
        f"Loaded sync config for folder '{sync_config.destination_folder_name}' "
        f"watching {len(sync_config.watched_paths)} path(s)"
    )
    return sync_config


def save_sync_config(sync_config: SyncConfig, path: Path) -> None:
    """Write the sync configuration.

    Args:
        sync_config: Configuration to save
        path: Path to the JSON config file

    Raises:
        SyncConfigError: If the file cannot be written
    """
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(sync_config.to_dict(), f, indent=2)
    except OSError as e:
        raise SyncConfigError(f"Cannot create config file {path}: {e}") from e
    logger.debug(f"Saved sync config to {path}")


def record_sync_time(
    sync_config: SyncConfig, path: Path, now: Optional[datetime] = None
) -> SyncConfig:
    """Refresh the last sync timestamp and persist the configuration.

    Args:
        sync_config: Configuration to update in place
        path: Path to the JSON config file
        now: Time to record (defaults to the current time)

    Returns:
        The updated configuration
    """
    sync_config.last_sync_timestamp = format_sync_time(now)
    save_sync_config(sync_config, path)
    return sync_config


def add_watched_path(sync_config: SyncConfig, watch_path: str) -> bool:
    """Append a watch path unless it is already present.

    Args:
        sync_config: Configuration to update in place
        watch_path: Absolute directory path

    Returns:
        True if the path was added, False if it was already watched
    """
    if watch_path in sync_config.watched_paths:
        return False
    sync_config.watched_paths.append(watch_path)
    return True
