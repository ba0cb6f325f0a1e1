"""OAuth authorization for Google Drive."""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from .exceptions import (
    ClientSecretNotFoundError,
    DriveAuthenticationError,
    DriveConfigError,
)

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive"]

FlowRunner = Callable[[dict[str, Any], list[str]], Credentials]


def load_client_config(path: Path) -> dict[str, Any]:
    """Read the OAuth client descriptor.

    Args:
        path: Path to the client-secret JSON file

    Returns:
        Parsed client configuration

    Raises:
        ClientSecretNotFoundError: If the file does not exist
        DriveConfigError: If the file is not a valid client descriptor
    """
    if not path.exists():
        raise ClientSecretNotFoundError(str(path))

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DriveConfigError(
            f"Unable to parse client secret file to config: {e}"
        ) from e

    if not isinstance(data, dict) or not ("installed" in data or "web" in data):
        raise DriveConfigError(
            f"Unable to parse client secret file to config: {path} has no "
            "'installed' or 'web' section"
        )
    return data


def ensure_token_dir(token_path: Path) -> Path:
    """Create the credential cache directory with owner-only permissions."""
    token_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    return token_path


def load_cached_credentials(token_path: Path) -> Optional[Credentials]:
    """Load cached credentials.

    Args:
        token_path: Path to the credential cache file

    Returns:
        Credentials if the cache exists and is readable, None otherwise
    """
    if not token_path.exists():
        logger.debug(f"No cached credentials at {token_path}")
        return None

    try:
        with open(token_path, encoding="utf-8") as f:
            info = json.load(f)
        return Credentials.from_authorized_user_info(info, SCOPES)
    except (OSError, json.JSONDecodeError, ValueError) as e:
        logger.warning(f"Ignoring unreadable credential cache {token_path}: {e}")
        return None


def save_credentials(token_path: Path, credentials: Credentials) -> None:
    """Write credentials to the cache file.

    Args:
        token_path: Path to the credential cache file
        credentials: Credentials to store
    """
    ensure_token_dir(token_path)
    logger.info(f"Saving credential file to: {token_path}")
    try:
        with open(token_path, "w", encoding="utf-8") as f:
            f.write(credentials.to_json())
    except OSError as e:
        raise DriveAuthenticationError(f"Unable to cache oauth token: {e}") from e


def run_installed_app_flow(
    client_config: dict[str, Any], scopes: list[str]
) -> Credentials:
    """Run the interactive browser authorization flow."""
    flow = InstalledAppFlow.from_client_config(client_config, scopes)
    return flow.run_local_server(port=0)


def get_credentials(
    client_config: dict[str, Any],
    token_path: Path,
    flow_runner: Optional[FlowRunner] = None,
) -> Credentials:
    """Return valid Drive credentials, authorizing interactively if needed.

    Args:
        client_config: OAuth client descriptor (see :func:`load_client_config`)
        token_path: Credential cache path
        flow_runner: Callable running the authorization flow
            (defaults to the local-server installed-app flow)

    Returns:
        Valid credentials

    Raises:
        DriveAuthenticationError: If refresh or authorization fails
    """
    credentials = load_cached_credentials(token_path)

    if credentials and credentials.valid:
        return credentials

    if credentials and credentials.expired and credentials.refresh_token:
        try:
            logger.info("Refreshing credentials...")
            credentials.refresh(Request())
        except GoogleAuthError as e:
            logger.warning(f"Failed to refresh credentials: {e}")
            credentials = None
        else:
            save_credentials(token_path, credentials)
            return credentials

    runner = flow_runner or run_installed_app_flow
    try:
        credentials = runner(client_config, SCOPES)
    except (GoogleAuthError, ValueError) as e:
        raise DriveAuthenticationError(
            f"Unable to retrieve token from web: {e}"
        ) from e

    if not credentials or not credentials.valid:
        raise DriveAuthenticationError("Authorization flow returned no valid token")

    save_credentials(token_path, credentials)
    return credentials
