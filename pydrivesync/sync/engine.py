"""Core sync engine: destination lookup, initial sweep and per-file sync."""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Callable, Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..api import DriveClient
from ..models import RemoteFolder
from ..output import OutputFormatter
from ..utils import split_event_path
from .filters import should_sync
from .operations import ReconcileResult, SyncAction, SyncOperations
from .scanner import DirectoryScanner

logger = logging.getLogger(__name__)


class SyncEngine:
    """Orchestrates reconciliation of local files into one Drive folder."""

    def __init__(
        self,
        client: DriveClient,
        output: Optional[OutputFormatter] = None,
        app_files: Iterable[str] = (),
        on_synced: Optional[Callable[[ReconcileResult], None]] = None,
    ):
        """Initialize sync engine.

        Args:
            client: Drive API client
            output: Output formatter for displaying progress/status
            app_files: Reserved file names that are never uploaded
            on_synced: Called after every successful create or update
        """
        self.client = client
        self.output = output or OutputFormatter()
        self.app_files = tuple(app_files)
        self.operations = SyncOperations(client, on_synced=on_synced)
        self.scanner = DirectoryScanner(app_files=self.app_files)

    def resolve_destination_folder(self, name: str) -> RemoteFolder:
        """Look up (or create) the destination folder."""
        self.output.info(f'Looking for folder "{name}"...')
        folder, created = self.operations.resolve_destination_folder(name)
        if created:
            self.output.success(f'Created folder "{folder.name}" for files')
        else:
            self.output.info(f"Found folder {folder.name} - ID: ({folder.id})")
        return folder

    def _report(self, result: ReconcileResult, folder: RemoteFolder) -> None:
        if result.action == SyncAction.UPDATE:
            self.output.success(f'Updated file "{result.remote_file.name}"')
        else:
            self.output.success(
                f'Uploaded file "{result.remote_file.name}" to "{folder.name}"'
            )

    def sync_path(self, path: str, folder: RemoteFolder) -> Optional[ReconcileResult]:
        """Reconcile one changed file reported by the watcher.

        Args:
            path: Path of the changed file
            folder: Destination folder

        Returns:
            ReconcileResult, or None if the path is excluded
        """
        if not should_sync(path, self.app_files):
            logger.debug(f"Ignoring excluded path: {path}")
            return None

        directory, name = split_event_path(path)
        logger.debug(f"Change in {directory}: {name}")
        result = self.operations.reconcile(path, name, folder)
        self._report(result, folder)
        return result

    def sweep(self, watched_paths: Iterable[str], folder: RemoteFolder) -> dict:
        """Upload or update every eligible file in the watched directories.

        A directory that cannot be listed is reported and skipped; the other
        directories are still swept. Reconciliation errors propagate.

        Args:
            watched_paths: Directories to sweep (non-recursive)
            folder: Destination folder

        Returns:
            Dictionary with sweep statistics

        Examples:
            >>> engine = SyncEngine(client)
            >>> stats = engine.sweep(["/home/user/Documents"], folder)
            >>> print(f"Created {stats['created']} files")
        """
        stats = {"created": 0, "updated": 0, "skipped_paths": 0}

        for watched_path in watched_paths:
            logger.debug(f"Sweeping {watched_path}")
            try:
                files = self.scanner.scan(Path(watched_path))
            except OSError as e:
                logger.error(f"Error listing {watched_path}: {e}")
                self.output.warning(f"Cannot list {watched_path}: {e}")
                stats["skipped_paths"] += 1
                continue

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=self.output.console,
                transient=True,
                disable=self.output.quiet,
            ) as progress:
                task = progress.add_task(f"Syncing {watched_path}", total=len(files))
                for local_file in files:
                    progress.update(task, description=f"Syncing {local_file.name}")
                    result = self.operations.reconcile(
                        local_file.path, local_file.name, folder
                    )
                    self._report(result, folder)
                    if result.action == SyncAction.UPDATE:
                        stats["updated"] += 1
                    else:
                        stats["created"] += 1
                    progress.advance(task)

        return stats
