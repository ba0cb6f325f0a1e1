"""Data models for Google Drive API responses."""

from dataclasses import dataclass, field
from typing import Any, Optional

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


@dataclass
class RemoteFolder:
    """A folder in Google Drive."""

    id: str
    name: str
    mime_type: str = FOLDER_MIME_TYPE

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "RemoteFolder":
        """Create a RemoteFolder from a Drive ``files`` resource."""
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            mime_type=data.get("mimeType", FOLDER_MIME_TYPE),
        )


@dataclass
class RemoteFile:
    """A file in Google Drive.

    A ``(parent_id, name)`` pair identifies the same logical file across
    syncs; no content hash or version is tracked.
    """

    id: str
    name: str
    parent_id: Optional[str] = None
    mime_type: Optional[str] = None
    modified_time: Optional[str] = None
    parents: list[str] = field(default_factory=list)

    @classmethod
    def from_api_response(
        cls, data: dict[str, Any], parent_id: Optional[str] = None
    ) -> "RemoteFile":
        """Create a RemoteFile from a Drive ``files`` resource.

        Args:
            data: JSON object returned by the API
            parent_id: Parent to assume when the response omits ``parents``

        Returns:
            RemoteFile instance
        """
        parents = list(data.get("parents") or [])
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            parent_id=parents[0] if parents else parent_id,
            mime_type=data.get("mimeType"),
            modified_time=data.get("modifiedTime"),
            parents=parents,
        )


@dataclass
class FileListResult:
    """One page of a ``files.list`` response."""

    files: list[dict[str, Any]]
    next_page_token: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Any) -> "FileListResult":
        if not isinstance(data, dict):
            return cls(files=[])
        return cls(
            files=list(data.get("files") or []),
            next_page_token=data.get("nextPageToken") or None,
        )
