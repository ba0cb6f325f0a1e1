"""Folder resolution and upload-or-update reconciliation."""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from ..api import DriveClient
from ..exceptions import AmbiguousFolderError, LocalFileError
from ..models import RemoteFile, RemoteFolder

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    """Remote call chosen for a local file."""

    CREATE = "create"
    """No file with that name under the folder: upload a new one"""

    UPDATE = "update"
    """A file with that name exists: replace its content"""


@dataclass
class ReconcileResult:
    """Outcome of reconciling one local file."""

    action: SyncAction
    """Remote call that was made"""

    remote_file: RemoteFile
    """Remote file after the call"""

    local_path: Path
    """Local file that was uploaded"""


class SyncOperations:
    """Remote operations used by the sweep and the watch loop.

    Every call re-queries Drive; nothing about remote files is cached between
    reconciliations.
    """

    def __init__(
        self,
        client: DriveClient,
        on_synced: Optional[Callable[[ReconcileResult], None]] = None,
    ):
        """Initialize sync operations.

        Args:
            client: Drive API client
            on_synced: Called after every successful create or update
        """
        self.client = client
        self.on_synced = on_synced

    def resolve_destination_folder(self, name: str) -> tuple[RemoteFolder, bool]:
        """Find the destination folder by name, creating it if absent.

        Args:
            name: Folder name

        Returns:
            Tuple of (the single folder with that name, whether it was created)

        Raises:
            AmbiguousFolderError: If several non-trashed folders share the name
            DriveAPIError: If listing or creation fails
        """
        matches = [f for f in self.client.list_folders(name) if f.name == name]

        if not matches:
            logger.info(f"No folder named '{name}', creating it")
            return self.client.create_folder(name), True

        if len(matches) > 1:
            raise AmbiguousFolderError(name, [f.id for f in matches])

        return matches[0], False

    def reconcile(
        self,
        local_path: Union[str, Path],
        logical_name: str,
        folder: RemoteFolder,
    ) -> ReconcileResult:
        """Upload a local file, or update the same-named remote file.

        Args:
            local_path: File to upload
            logical_name: Remote name (the local base name)
            folder: Destination folder

        Returns:
            ReconcileResult describing the call made

        Raises:
            LocalFileError: If the local file cannot be read
            DriveAPIError: If the remote lookup, create or update fails
        """
        local_path = Path(local_path)
        try:
            content = local_path.read_bytes()
        except OSError as e:
            raise LocalFileError(f"error opening file {local_path}: {e}") from e

        existing = self.client.list_files(folder.id, logical_name)

        if existing:
            target = existing[0]
            if len(existing) > 1:
                logger.debug(
                    f"{len(existing)} files named '{logical_name}' in "
                    f"'{folder.name}', updating {target.id}"
                )
            logger.info(f"Updating existing file '{target.name}' in '{folder.name}'")
            # Content only; the remote keeps its own base name
            remote_file = self.client.update_file(
                target.id, content, name=os.path.basename(target.name)
            )
            result = ReconcileResult(SyncAction.UPDATE, remote_file, local_path)
        else:
            logger.info(f"Uploading new file '{logical_name}' to '{folder.name}'")
            remote_file = self.client.create_file(folder.id, logical_name, content)
            result = ReconcileResult(SyncAction.CREATE, remote_file, local_path)

        if self.on_synced is not None:
            self.on_synced(result)
        return result
