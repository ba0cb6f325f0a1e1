"""PyDriveSync - watch local folders and sync their files to Google Drive."""

__version__ = "0.1.0"

from .api import DriveClient  # noqa: E402
from .exceptions import (  # noqa: E402
    AmbiguousFolderError,
    ClientSecretNotFoundError,
    DriveAPIError,
    DriveAuthenticationError,
    DriveConfigError,
    DriveInvalidResponseError,
    DriveNetworkError,
    DriveNotFoundError,
    DrivePermissionError,
    DriveRateLimitError,
    DriveSyncError,
    DriveUploadError,
    LocalFileError,
    SyncConfigError,
    SyncConfigNotFoundError,
    UnknownCommandError,
    WatchRegistrationError,
)
from .models import RemoteFile, RemoteFolder  # noqa: E402

__all__ = [
    "__version__",
    "DriveClient",
    "RemoteFile",
    "RemoteFolder",
    "AmbiguousFolderError",
    "ClientSecretNotFoundError",
    "DriveAPIError",
    "DriveAuthenticationError",
    "DriveConfigError",
    "DriveInvalidResponseError",
    "DriveNetworkError",
    "DriveNotFoundError",
    "DrivePermissionError",
    "DriveRateLimitError",
    "DriveSyncError",
    "DriveUploadError",
    "LocalFileError",
    "SyncConfigError",
    "SyncConfigNotFoundError",
    "UnknownCommandError",
    "WatchRegistrationError",
]
