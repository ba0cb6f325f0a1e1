"""Unit tests for the Google Drive API client."""

import json
from unittest.mock import Mock, patch

import httpx
import pytest
from google.auth.exceptions import RefreshError, TransportError

from pydrivesync.api import DriveClient, escape_query_value
from pydrivesync.exceptions import (
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
from pydrivesync.models import FOLDER_MIME_TYPE


def make_response(status_code=200, payload=None, content=None):
    """Build a mock httpx response."""
    response = Mock()
    response.status_code = status_code
    if content is None:
        content = json.dumps(payload).encode() if payload is not None else b""
    response.content = content
    response.headers = {"Content-Type": "application/json"}
    if payload is not None:
        response.json.return_value = payload
    else:
        response.json.side_effect = ValueError("no json")
    if status_code >= 400:
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "error", request=Mock(), response=response
        )
    return response


class TestDriveClient:
    """Tests for DriveClient initialization."""

    def test_init_with_access_token(self):
        """Test client initialization with a static token."""
        client = DriveClient(access_token="token")
        assert client.access_token == "token"
        assert client.api_url == "https://www.googleapis.com/drive/v3"
        assert client.upload_url == "https://www.googleapis.com/upload/drive/v3"
        assert client.max_retries == 0

    def test_init_without_credentials_raises_error(self):
        """Test that a client needs credentials or a token."""
        with pytest.raises(DriveConfigError, match="No credentials configured"):
            DriveClient()

    def test_custom_urls_strip_trailing_slash(self):
        client = DriveClient(
            access_token="token",
            api_url="http://localhost/drive/",
            upload_url="http://localhost/upload/",
        )
        assert client.api_url == "http://localhost/drive"
        assert client.upload_url == "http://localhost/upload"

    def test_auth_header_uses_access_token(self):
        client = DriveClient(access_token="token")
        assert client._auth_headers() == {"Authorization": "Bearer token"}

    def test_auth_header_uses_valid_credentials(self):
        credentials = Mock(valid=True, token="abc")
        client = DriveClient(credentials=credentials)
        assert client._auth_headers() == {"Authorization": "Bearer abc"}
        credentials.refresh.assert_not_called()

    def test_expired_credentials_without_refresh_token(self):
        credentials = Mock(valid=False, refresh_token=None)
        client = DriveClient(credentials=credentials)
        with pytest.raises(DriveAuthenticationError, match="no refresh token"):
            client._auth_headers()

    def test_expired_credentials_are_refreshed(self):
        credentials = Mock(valid=False, refresh_token="refresh", token="new")
        client = DriveClient(credentials=credentials)
        with patch("google.auth.transport.requests.Request"):
            headers = client._auth_headers()
        credentials.refresh.assert_called_once()
        assert headers == {"Authorization": "Bearer new"}

    def test_refresh_network_failure_is_network_error(self):
        """A transport failure during token refresh maps to DriveNetworkError."""
        credentials = Mock(valid=False, refresh_token="refresh")
        credentials.refresh.side_effect = TransportError("network down")
        client = DriveClient(credentials=credentials)

        with patch("google.auth.transport.requests.Request"):
            with pytest.raises(DriveNetworkError, match="network down"):
                client.list_folders("Docs")

    def test_refresh_rejected_is_authentication_error(self):
        credentials = Mock(valid=False, refresh_token="refresh")
        credentials.refresh.side_effect = RefreshError("invalid_grant")
        client = DriveClient(credentials=credentials)

        with patch("google.auth.transport.requests.Request"):
            with pytest.raises(DriveAuthenticationError, match="invalid_grant"):
                client.list_folders("Docs")

    @patch("pydrivesync.api.time.sleep")
    @patch("pydrivesync.api.httpx.Client.request")
    def test_refresh_network_failure_is_retried(self, mock_request, mock_sleep):
        credentials = Mock(valid=False, refresh_token="refresh", token="new")
        credentials.refresh.side_effect = [TransportError("network down"), None]
        mock_request.return_value = make_response(payload={"files": []})
        client = DriveClient(credentials=credentials, max_retries=1)

        with patch("google.auth.transport.requests.Request"):
            assert client.list_folders("Docs") == []

        assert credentials.refresh.call_count == 2
        mock_sleep.assert_called_once()


class TestEscapeQueryValue:
    """Tests for Drive query escaping."""

    def test_plain_value(self):
        assert escape_query_value("report.pdf") == "report.pdf"

    def test_single_quote(self):
        assert escape_query_value("it's.txt") == "it\\'s.txt"

    def test_backslash(self):
        assert escape_query_value("a\\b") == "a\\\\b"


class TestAPIRequest:
    """Tests for the _request method."""

    @patch("pydrivesync.api.httpx.Client.request")
    def test_successful_json_response(self, mock_request):
        mock_request.return_value = make_response(payload={"id": "1"})

        client = DriveClient(access_token="token")
        result = client._request("GET", "https://example.test/files")

        assert result == {"id": "1"}
        _, kwargs = mock_request.call_args
        assert kwargs["headers"]["Authorization"] == "Bearer token"

    @patch("pydrivesync.api.httpx.Client.request")
    def test_empty_response(self, mock_request):
        mock_request.return_value = make_response()

        client = DriveClient(access_token="token")
        assert client._request("GET", "https://example.test/files") == {}

    @patch("pydrivesync.api.httpx.Client.request")
    def test_invalid_json_raises_error(self, mock_request):
        mock_request.return_value = make_response(content=b"<html>oops</html>")

        client = DriveClient(access_token="token")
        with pytest.raises(DriveInvalidResponseError):
            client._request("GET", "https://example.test/files")

    @pytest.mark.parametrize(
        "status_code,error_class",
        [
            (401, DriveAuthenticationError),
            (403, DrivePermissionError),
            (404, DriveNotFoundError),
            (429, DriveRateLimitError),
        ],
    )
    @patch("pydrivesync.api.httpx.Client.request")
    def test_http_errors_are_mapped(self, mock_request, status_code, error_class):
        mock_request.return_value = make_response(status_code=status_code)

        client = DriveClient(access_token="token")
        with pytest.raises(error_class):
            client._request("GET", "https://example.test/files")
        assert mock_request.call_count == 1

    @patch("pydrivesync.api.httpx.Client.request")
    def test_server_error_includes_message(self, mock_request):
        mock_request.return_value = make_response(
            status_code=500, payload={"error": {"code": 500, "message": "Backend"}}
        )

        client = DriveClient(access_token="token")
        with pytest.raises(DriveAPIError, match="status 500: Backend"):
            client._request("GET", "https://example.test/files")
        # Fail fast by default
        assert mock_request.call_count == 1

    @patch("pydrivesync.api.time.sleep")
    @patch("pydrivesync.api.httpx.Client.request")
    def test_server_error_retried_when_enabled(self, mock_request, mock_sleep):
        mock_request.side_effect = [
            make_response(status_code=503),
            make_response(payload={"id": "1"}),
        ]

        client = DriveClient(access_token="token", max_retries=2)
        assert client._request("GET", "https://example.test/files") == {"id": "1"}
        assert mock_request.call_count == 2
        mock_sleep.assert_called_once()

    @patch("pydrivesync.api.httpx.Client.request")
    def test_network_error(self, mock_request):
        mock_request.side_effect = httpx.ConnectError("refused")

        client = DriveClient(access_token="token")
        with pytest.raises(DriveNetworkError, match="Network error"):
            client._request("GET", "https://example.test/files")


class TestListing:
    """Tests for folder and file listing."""

    def test_list_folders_follows_pagination(self):
        client = DriveClient(access_token="token")
        pages = [
            {
                "files": [{"id": "f1", "name": "Docs", "mimeType": FOLDER_MIME_TYPE}],
                "nextPageToken": "p2",
            },
            {"files": [{"id": "f2", "name": "Docs", "mimeType": FOLDER_MIME_TYPE}]},
        ]
        with patch.object(client, "_request", side_effect=pages) as mock_request:
            folders = client.list_folders("Docs")

        assert [f.id for f in folders] == ["f1", "f2"]
        assert mock_request.call_count == 2
        first_params = mock_request.call_args_list[0].kwargs["params"]
        second_params = mock_request.call_args_list[1].kwargs["params"]
        assert "trashed=false" in first_params["q"]
        assert f"mimeType='{FOLDER_MIME_TYPE}'" in first_params["q"]
        assert "name='Docs'" in first_params["q"]
        assert "pageToken" not in first_params
        assert second_params["pageToken"] == "p2"

    def test_list_folders_without_name(self):
        client = DriveClient(access_token="token")
        with patch.object(client, "_request", return_value={"files": []}) as req:
            assert client.list_folders() == []
        assert "name=" not in req.call_args.kwargs["params"]["q"]

    def test_list_files_query(self):
        client = DriveClient(access_token="token")
        response = {"files": [{"id": "x1", "name": "it's.txt"}]}
        with patch.object(client, "_request", return_value=response) as req:
            files = client.list_files("folder-1", "it's.txt")

        query = req.call_args.kwargs["params"]["q"]
        assert "'folder-1' in parents" in query
        assert "trashed=false" in query
        assert "name='it\\'s.txt'" in query
        assert len(files) == 1
        assert files[0].id == "x1"
        assert files[0].parent_id == "folder-1"


class TestWriteOperations:
    """Tests for folder creation and uploads."""

    def test_create_folder(self):
        client = DriveClient(access_token="token")
        response = {"id": "new", "name": "Docs", "mimeType": FOLDER_MIME_TYPE}
        with patch.object(client, "_request", return_value=response) as req:
            folder = client.create_folder("Docs")

        assert folder.id == "new"
        assert folder.mime_type == FOLDER_MIME_TYPE
        assert req.call_args.kwargs["json"] == {
            "name": "Docs",
            "mimeType": FOLDER_MIME_TYPE,
        }

    def test_create_folder_without_id_raises(self):
        client = DriveClient(access_token="token")
        with patch.object(client, "_request", return_value={}):
            with pytest.raises(DriveInvalidResponseError):
                client.create_folder("Docs")

    def test_create_file_sends_multipart_body(self):
        client = DriveClient(access_token="token")
        response = {"id": "file-1", "name": "a.txt", "parents": ["folder-1"]}
        with patch.object(client, "_request", return_value=response) as req:
            remote = client.create_file("folder-1", "a.txt", b"hello")

        args, kwargs = req.call_args
        assert args == ("POST", "https://www.googleapis.com/upload/drive/v3/files")
        assert kwargs["params"]["uploadType"] == "multipart"
        assert kwargs["headers"]["Content-Type"].startswith("multipart/related")
        body = kwargs["content"]
        assert b'"parents": ["folder-1"]' in body
        assert b'"name": "a.txt"' in body
        assert b"Content-Type: text/plain" in body
        assert b"hello" in body
        assert remote.id == "file-1"
        assert remote.parent_id == "folder-1"

    def test_update_file_uses_patch(self):
        client = DriveClient(access_token="token")
        response = {"id": "file-1", "name": "a.txt"}
        with patch.object(client, "_request", return_value=response) as req:
            remote = client.update_file("file-1", b"new", name="a.txt")

        args, kwargs = req.call_args
        assert args == (
            "PATCH",
            "https://www.googleapis.com/upload/drive/v3/files/file-1",
        )
        assert b'{"name": "a.txt"}' in kwargs["content"]
        assert b"new" in kwargs["content"]
        assert remote.id == "file-1"

    def test_upload_without_id_raises(self):
        client = DriveClient(access_token="token")
        with patch.object(client, "_request", return_value={"error": "x"}):
            with pytest.raises(DriveUploadError):
                client.create_file("folder-1", "a.bin", b"\x00")

    def test_unknown_extension_defaults_to_octet_stream(self):
        client = DriveClient(access_token="token")
        assert client._detect_mime_type("blob.unknownext") == (
            "application/octet-stream"
        )
