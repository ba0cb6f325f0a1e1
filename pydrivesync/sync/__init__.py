"""Sync engine for PyDriveSync - sweep, reconcile and watch."""

from .engine import SyncEngine
from .filters import is_app_file, is_hidden_file, should_sync
from .operations import ReconcileResult, SyncAction, SyncOperations
from .scanner import DirectoryScanner, LocalFile
from .state import (
    SyncConfig,
    add_watched_path,
    load_sync_config,
    record_sync_time,
    save_sync_config,
)
from .watcher import (
    QueueEventHandler,
    WatchError,
    WatchEvent,
    WatchLoop,
    WatchOperation,
)

__all__ = [
    "SyncEngine",
    "SyncOperations",
    "SyncAction",
    "ReconcileResult",
    "DirectoryScanner",
    "LocalFile",
    "SyncConfig",
    "load_sync_config",
    "save_sync_config",
    "record_sync_time",
    "add_watched_path",
    "is_app_file",
    "is_hidden_file",
    "should_sync",
    "WatchLoop",
    "WatchEvent",
    "WatchError",
    "WatchOperation",
    "QueueEventHandler",
]
