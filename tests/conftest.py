"""Shared fixtures for PyDriveSync tests."""

from unittest.mock import Mock

import pytest

from pydrivesync.api import DriveClient
from pydrivesync.models import RemoteFile, RemoteFolder
from pydrivesync.output import OutputFormatter


class InMemoryDrive:
    """Minimal in-memory stand-in for the Drive API, keyed by (parent, name)."""

    def __init__(self):
        self.folders: list[RemoteFolder] = []
        self.files: dict[str, RemoteFile] = {}
        self.contents: dict[str, bytes] = {}
        self.calls: list[str] = []
        self._next_id = 1

    def _new_id(self, prefix: str) -> str:
        new_id = f"{prefix}{self._next_id}"
        self._next_id += 1
        return new_id

    def list_folders(self, name=None):
        self.calls.append("list_folders")
        return [f for f in self.folders if name is None or f.name == name]

    def list_files(self, parent_id, name):
        self.calls.append("list_files")
        return [
            f
            for f in self.files.values()
            if f.parent_id == parent_id and f.name == name
        ]

    def create_folder(self, name):
        self.calls.append("create_folder")
        folder = RemoteFolder(id=self._new_id("folder-"), name=name)
        self.folders.append(folder)
        return folder

    def create_file(self, parent_id, name, content, mime_type=None):
        self.calls.append("create_file")
        remote = RemoteFile(id=self._new_id("file-"), name=name, parent_id=parent_id)
        self.files[remote.id] = remote
        self.contents[remote.id] = content
        return remote

    def update_file(self, file_id, content, name=None, mime_type=None):
        self.calls.append("update_file")
        remote = self.files[file_id]
        if name:
            remote.name = name
        self.contents[file_id] = content
        return remote


@pytest.fixture
def drive():
    """Provide an in-memory Drive."""
    return InMemoryDrive()


@pytest.fixture
def mock_client():
    """Create a mock Drive client."""
    return Mock(spec=DriveClient)


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    output = Mock(spec=OutputFormatter)
    output.quiet = True
    output.console = None
    return output
