"""Application settings for PyDriveSync.

Settings come from environment variables with file-based defaults. The
per-session sync record (destination folder, watched paths, last sync time)
lives in :mod:`pydrivesync.sync.state`, not here.
"""

import os
from pathlib import Path
from typing import Optional

DEFAULT_SYNC_CONFIG_FILE = "config.json"
DEFAULT_CLIENT_SECRET_FILE = "client_secret.json"
DEFAULT_TOKEN_FILE_NAME = "pydrivesync.json"
DEFAULT_API_URL = "https://www.googleapis.com/drive/v3"
DEFAULT_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3"

# Names of the program's own artifacts, never uploaded
PROGRAM_NAMES = ("pydrivesync",)


class Config:
    """Reads PyDriveSync settings from the environment."""

    def __init__(self, environ: Optional[dict[str, str]] = None):
        self._environ = environ if environ is not None else os.environ

    def _get(self, key: str) -> Optional[str]:
        value = self._environ.get(key)
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def sync_config_path(self) -> Path:
        """Path of the JSON sync configuration record."""
        return Path(self._get("PYDRIVESYNC_CONFIG") or DEFAULT_SYNC_CONFIG_FILE)

    @property
    def client_secret_path(self) -> Path:
        """Path of the externally provisioned OAuth client descriptor."""
        return Path(
            self._get("PYDRIVESYNC_CLIENT_SECRET") or DEFAULT_CLIENT_SECRET_FILE
        )

    @property
    def token_path(self) -> Path:
        """Path of the cached access/refresh token."""
        override = self._get("PYDRIVESYNC_TOKEN_FILE")
        if override:
            return Path(override)
        return self.get_credentials_dir() / DEFAULT_TOKEN_FILE_NAME

    @property
    def api_url(self) -> str:
        return (self._get("PYDRIVESYNC_API_URL") or DEFAULT_API_URL).rstrip("/")

    @property
    def upload_url(self) -> str:
        return (self._get("PYDRIVESYNC_UPLOAD_URL") or DEFAULT_UPLOAD_URL).rstrip(
            "/"
        )

    def get_credentials_dir(self) -> Path:
        """Get the per-user credentials directory (~/.credentials)."""
        return Path.home() / ".credentials"

    def app_file_names(
        self,
        sync_config_path: Optional[Path] = None,
        client_secret_path: Optional[Path] = None,
    ) -> tuple[str, ...]:
        """Names of files that belong to the program itself.

        Args:
            sync_config_path: Sync config path in use (defaults to settings)
            client_secret_path: Client-secret path in use (defaults to settings)

        Returns:
            Tuple of base names excluded from every sweep and watch event
        """
        names = [
            (sync_config_path or self.sync_config_path).name,
            (client_secret_path or self.client_secret_path).name,
            self.token_path.name,
            *PROGRAM_NAMES,
        ]
        # Keep order, drop duplicates
        return tuple(dict.fromkeys(names))


config = Config()
