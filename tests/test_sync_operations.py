"""Tests for folder resolution and upload-or-update reconciliation."""

from unittest.mock import Mock

import pytest

from pydrivesync.exceptions import (
    AmbiguousFolderError,
    DriveAPIError,
    LocalFileError,
)
from pydrivesync.models import RemoteFile, RemoteFolder
from pydrivesync.sync.operations import SyncAction, SyncOperations


class TestResolveDestinationFolder:
    """Tests for SyncOperations.resolve_destination_folder."""

    def test_creates_folder_when_absent(self, mock_client):
        created = RemoteFolder(id="new", name="Docs")
        mock_client.list_folders.return_value = []
        mock_client.create_folder.return_value = created

        folder, was_created = SyncOperations(mock_client).resolve_destination_folder(
            "Docs"
        )

        assert folder is created
        assert was_created is True
        mock_client.create_folder.assert_called_once_with("Docs")

    def test_returns_single_match(self, mock_client):
        existing = RemoteFolder(id="f1", name="Docs")
        mock_client.list_folders.return_value = [existing]

        folder, was_created = SyncOperations(mock_client).resolve_destination_folder(
            "Docs"
        )

        assert folder is existing
        assert was_created is False
        mock_client.create_folder.assert_not_called()

    def test_ignores_inexact_names(self, mock_client):
        mock_client.list_folders.return_value = [RemoteFolder(id="f1", name="docs")]
        mock_client.create_folder.return_value = RemoteFolder(id="new", name="Docs")

        folder, _ = SyncOperations(mock_client).resolve_destination_folder("Docs")

        assert folder.id == "new"

    def test_multiple_matches_is_an_error(self, mock_client):
        mock_client.list_folders.return_value = [
            RemoteFolder(id="f1", name="Docs"),
            RemoteFolder(id="f2", name="Docs"),
        ]

        with pytest.raises(AmbiguousFolderError) as exc_info:
            SyncOperations(mock_client).resolve_destination_folder("Docs")

        assert exc_info.value.folder_ids == ["f1", "f2"]
        mock_client.create_folder.assert_not_called()

    def test_api_error_propagates(self, mock_client):
        mock_client.list_folders.side_effect = DriveAPIError("boom")

        with pytest.raises(DriveAPIError):
            SyncOperations(mock_client).resolve_destination_folder("Docs")


class TestReconcile:
    """Tests for SyncOperations.reconcile."""

    @pytest.fixture
    def folder(self):
        return RemoteFolder(id="folder-1", name="Docs")

    def test_creates_when_no_remote_file(self, mock_client, folder, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"hello")
        created = RemoteFile(id="file-1", name="a.txt", parent_id="folder-1")
        mock_client.list_files.return_value = []
        mock_client.create_file.return_value = created

        result = SyncOperations(mock_client).reconcile(local, "a.txt", folder)

        assert result.action == SyncAction.CREATE
        assert result.remote_file is created
        mock_client.list_files.assert_called_once_with("folder-1", "a.txt")
        mock_client.create_file.assert_called_once_with("folder-1", "a.txt", b"hello")
        mock_client.update_file.assert_not_called()

    def test_updates_when_remote_file_exists(self, mock_client, folder, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"v2")
        existing = RemoteFile(id="file-1", name="a.txt", parent_id="folder-1")
        mock_client.list_files.return_value = [existing]
        mock_client.update_file.return_value = existing

        result = SyncOperations(mock_client).reconcile(local, "a.txt", folder)

        assert result.action == SyncAction.UPDATE
        mock_client.update_file.assert_called_once_with("file-1", b"v2", name="a.txt")
        mock_client.create_file.assert_not_called()

    def test_update_keeps_remote_base_name(self, mock_client, folder, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"v2")
        existing = RemoteFile(id="file-1", name="old/a.txt", parent_id="folder-1")
        mock_client.list_files.return_value = [existing]
        mock_client.update_file.return_value = existing

        SyncOperations(mock_client).reconcile(local, "a.txt", folder)

        assert mock_client.update_file.call_args.kwargs["name"] == "a.txt"

    def test_on_synced_called_after_success(self, mock_client, folder, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"x")
        mock_client.list_files.return_value = []
        mock_client.create_file.return_value = RemoteFile(id="1", name="a.txt")
        on_synced = Mock()

        result = SyncOperations(mock_client, on_synced=on_synced).reconcile(
            local, "a.txt", folder
        )

        on_synced.assert_called_once_with(result)

    def test_unreadable_local_file(self, mock_client, folder, tmp_path):
        on_synced = Mock()

        with pytest.raises(LocalFileError, match="error opening file"):
            SyncOperations(mock_client, on_synced=on_synced).reconcile(
                tmp_path / "gone.txt", "gone.txt", folder
            )

        mock_client.list_files.assert_not_called()
        on_synced.assert_not_called()

    def test_api_failure_is_not_recorded(self, mock_client, folder, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"x")
        mock_client.list_files.return_value = []
        mock_client.create_file.side_effect = DriveAPIError("quota")
        on_synced = Mock()

        with pytest.raises(DriveAPIError):
            SyncOperations(mock_client, on_synced=on_synced).reconcile(
                local, "a.txt", folder
            )

        on_synced.assert_not_called()

    def test_reconcile_twice_is_idempotent(self, drive, tmp_path):
        """A second reconcile of the same file updates instead of creating."""
        local = tmp_path / "a.txt"
        local.write_bytes(b"same")
        operations = SyncOperations(drive)
        folder, _ = operations.resolve_destination_folder("Docs")

        first = operations.reconcile(local, "a.txt", folder)
        second = operations.reconcile(local, "a.txt", folder)

        assert first.action == SyncAction.CREATE
        assert second.action == SyncAction.UPDATE
        same_pair = [
            f
            for f in drive.files.values()
            if f.parent_id == folder.id and f.name == "a.txt"
        ]
        assert len(same_pair) == 1
        assert drive.calls.count("create_file") == 1
        assert drive.calls.count("update_file") == 1
