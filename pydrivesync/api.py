"""API client for Google Drive."""

from __future__ import annotations

import json
import mimetypes
import time
import uuid
from typing import TYPE_CHECKING, Any

import httpx

from .config import config
from .exceptions import (
    DriveAPIError,
    DriveAuthenticationError,
    DriveConfigError,
    DriveInvalidResponseError,
    DriveNetworkError,
    DriveNotFoundError,
    DrivePermissionError,
    DriveRateLimitError,
    DriveUploadError,
)
from .models import FOLDER_MIME_TYPE, FileListResult, RemoteFile, RemoteFolder

if TYPE_CHECKING:
    from google.oauth2.credentials import Credentials

FILE_FIELDS = "id, name, mimeType, parents, modifiedTime"


def escape_query_value(value: str) -> str:
    """Escape a string literal for use inside a Drive ``q`` expression.

    Args:
        value: Raw value (e.g. a file name)

    Returns:
        Value with backslashes and single quotes escaped
    """
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveClient:
    """Client for the Google Drive v3 REST API."""

    def __init__(
        self,
        credentials: Credentials | None = None,
        access_token: str | None = None,
        api_url: str | None = None,
        upload_url: str | None = None,
        max_retries: int = 0,
        retry_delay: float = 1.0,
        timeout: float = 60.0,
    ):
        """Initialize Drive API client.

        Args:
            credentials: OAuth credentials (refreshed automatically when expired)
            access_token: Static bearer token, used when no credentials are given
            api_url: Optional metadata API URL (uses config if not provided)
            upload_url: Optional upload API URL (uses config if not provided)
            max_retries: Retry attempts for transient failures (default: 0,
                every failure is reported immediately)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 60.0)
        """
        if credentials is None and not access_token:
            raise DriveConfigError(
                "No credentials configured. Run the authorization flow first."
            )
        self.credentials = credentials
        self.access_token = access_token
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.upload_url = (upload_url or config.upload_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _auth_headers(self) -> dict[str, str]:
        """Build the Authorization header, refreshing credentials if needed."""
        if self.credentials is None:
            return {"Authorization": f"Bearer {self.access_token}"}

        if not self.credentials.valid:
            if not self.credentials.refresh_token:
                raise DriveAuthenticationError(
                    "Credentials expired and no refresh token is available"
                )
            from google.auth.exceptions import GoogleAuthError, TransportError
            from google.auth.transport.requests import Request

            try:
                self.credentials.refresh(Request())
            except TransportError as e:
                raise DriveNetworkError(
                    f"Network error while refreshing credentials: {e}"
                ) from e
            except GoogleAuthError as e:
                raise DriveAuthenticationError(
                    f"Failed to refresh credentials: {e}"
                ) from e
        return {"Authorization": f"Bearer {self.credentials.token}"}

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False

        if isinstance(exception, (DriveNetworkError, DriveRateLimitError)):
            return True

        if isinstance(exception, httpx.HTTPStatusError):
            return 500 <= exception.response.status_code < 600

        return False

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        import random

        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Map an HTTP error to a PyDriveSync exception.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code

        if status_code == 401:
            raise DriveAuthenticationError(
                "Invalid or expired credentials - re-run the authorization flow"
            ) from e
        elif status_code == 403:
            raise DrivePermissionError(
                "Access forbidden - check the granted Drive scope"
            ) from e
        elif status_code == 404:
            raise DriveNotFoundError("Resource not found") from e
        elif status_code == 429:
            error = DriveRateLimitError("Rate limit exceeded - please try again later")
            return (error, attempt < self.max_retries)

        error_msg = f"API request failed with status {status_code}"
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict):
                    detail = error_data.get("error")
                    if isinstance(detail, dict):
                        detail = detail.get("message")
                    if detail:
                        error_msg = f"{error_msg}: {detail}"
        except ValueError:
            pass

        error = DriveAPIError(error_msg)
        should_retry = 500 <= status_code < 600 and attempt < self.max_retries
        return (error, should_retry)

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Make an API request.

        Args:
            method: HTTP method
            url: Absolute request URL
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data

        Raises:
            DriveAPIError: If the request fails after all retries
        """
        last_exception: Exception | None = None
        client = self._get_client()
        extra_headers = kwargs.pop("headers", None) or {}

        for attempt in range(self.max_retries + 1):
            try:
                headers = {**self._auth_headers(), **extra_headers}
                response = client.request(method, url, headers=headers, **kwargs)
                response.raise_for_status()

                if not response.content:
                    return {}
                try:
                    return response.json()
                except ValueError as e:
                    raise DriveInvalidResponseError(
                        "Invalid JSON response from Google Drive"
                    ) from e

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error
                if should_retry:
                    delay = self._calculate_retry_delay(attempt)
                    if isinstance(error, DriveRateLimitError):
                        retry_after = e.response.headers.get("Retry-After")
                        if retry_after and retry_after.isdigit():
                            delay = float(retry_after)
                    time.sleep(delay)
                    continue
                raise error from e
            except DriveNetworkError as e:
                last_exception = e
                if self._should_retry(e, attempt):
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise
            except DriveAPIError:
                raise
            except httpx.RequestError as e:
                error = DriveNetworkError(f"Network error: {e}")
                last_exception = error
                if self._should_retry(error, attempt):
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise DriveAPIError("Request failed after all retry attempts")

    # =========================
    # Listing Operations
    # =========================

    def _list(self, query: str, fields: str = FILE_FIELDS) -> list[dict[str, Any]]:
        """Run a ``files.list`` query, following pagination.

        Args:
            query: Drive search expression
            fields: Fields to request for each file

        Returns:
            All matching file resources in listing order
        """
        items: list[dict[str, Any]] = []
        page_token: str | None = None

        while True:
            params: dict[str, Any] = {
                "q": query,
                "fields": f"nextPageToken, files({fields})",
                "pageSize": 1000,
                "spaces": "drive",
            }
            if page_token:
                params["pageToken"] = page_token

            page = FileListResult.from_api_response(
                self._request("GET", f"{self.api_url}/files", params=params)
            )
            items.extend(page.files)
            if not page.next_page_token:
                break
            page_token = page.next_page_token

        return items

    def list_folders(self, name: str | None = None) -> list[RemoteFolder]:
        """List non-trashed folders, optionally restricted to one name.

        Args:
            name: Exact folder name to match (None lists all folders)

        Returns:
            Folders in listing order
        """
        query = f"mimeType='{FOLDER_MIME_TYPE}' and trashed=false"
        if name is not None:
            query += f" and name='{escape_query_value(name)}'"
        return [RemoteFolder.from_api_response(f) for f in self._list(query)]

    def list_files(self, parent_id: str, name: str) -> list[RemoteFile]:
        """List non-trashed files named ``name`` directly under ``parent_id``.

        Args:
            parent_id: Parent folder ID
            name: Exact file name

        Returns:
            Matching files in listing order
        """
        query = (
            f"'{escape_query_value(parent_id)}' in parents and trashed=false "
            f"and name='{escape_query_value(name)}'"
        )
        return [
            RemoteFile.from_api_response(f, parent_id=parent_id)
            for f in self._list(query)
        ]

    # =========================
    # Write Operations
    # =========================

    def create_folder(self, name: str) -> RemoteFolder:
        """Create a folder in the Drive root.

        Args:
            name: Folder name

        Returns:
            The created folder
        """
        data = self._request(
            "POST",
            f"{self.api_url}/files",
            params={"fields": "id, name, mimeType"},
            json={"name": name, "mimeType": FOLDER_MIME_TYPE},
        )
        if not isinstance(data, dict) or not data.get("id"):
            raise DriveInvalidResponseError(f"Folder '{name}' was not created")
        return RemoteFolder.from_api_response(data)

    def _detect_mime_type(self, name: str) -> str:
        mime_type, _ = mimetypes.guess_type(name)
        return mime_type or "application/octet-stream"

    @staticmethod
    def _multipart_body(
        metadata: dict[str, Any], content: bytes, mime_type: str
    ) -> tuple[bytes, str]:
        """Build a ``multipart/related`` body for a Drive upload.

        Returns:
            Tuple of (body bytes, Content-Type header value)
        """
        boundary = f"pydrivesync-{uuid.uuid4().hex}"
        body = b"".join(
            [
                f"--{boundary}\r\n".encode(),
                b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
                json.dumps(metadata).encode("utf-8"),
                f"\r\n--{boundary}\r\n".encode(),
                f"Content-Type: {mime_type}\r\n\r\n".encode(),
                content,
                f"\r\n--{boundary}--\r\n".encode(),
            ]
        )
        return body, f"multipart/related; boundary={boundary}"

    def _upload(
        self,
        method: str,
        url: str,
        metadata: dict[str, Any],
        content: bytes,
        mime_type: str,
    ) -> dict[str, Any]:
        body, content_type = self._multipart_body(metadata, content, mime_type)
        data = self._request(
            method,
            url,
            params={"uploadType": "multipart", "fields": FILE_FIELDS},
            content=body,
            headers={"Content-Type": content_type},
        )
        if not isinstance(data, dict) or not data.get("id"):
            raise DriveUploadError(
                f"Upload of '{metadata.get('name', '')}' returned no file"
            )
        return data

    def create_file(
        self,
        parent_id: str,
        name: str,
        content: bytes,
        mime_type: str | None = None,
    ) -> RemoteFile:
        """Upload a new file under a folder.

        Args:
            parent_id: Destination folder ID
            name: Remote file name
            content: File bytes
            mime_type: Content type (guessed from the name if omitted)

        Returns:
            The created file
        """
        data = self._upload(
            "POST",
            f"{self.upload_url}/files",
            {"name": name, "parents": [parent_id]},
            content,
            mime_type or self._detect_mime_type(name),
        )
        return RemoteFile.from_api_response(data, parent_id=parent_id)

    def update_file(
        self,
        file_id: str,
        content: bytes,
        name: str | None = None,
        mime_type: str | None = None,
    ) -> RemoteFile:
        """Replace the content of an existing file.

        Args:
            file_id: ID of the file to update
            content: New file bytes
            name: Name to set on the file (unchanged if omitted)
            mime_type: Content type (guessed from ``name`` if omitted)

        Returns:
            The updated file
        """
        metadata: dict[str, Any] = {}
        if name:
            metadata["name"] = name
        data = self._upload(
            "PATCH",
            f"{self.upload_url}/files/{file_id}",
            metadata,
            content,
            mime_type or self._detect_mime_type(name or ""),
        )
        return RemoteFile.from_api_response(data)
