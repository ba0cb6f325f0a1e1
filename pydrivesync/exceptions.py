"""Exceptions raised by PyDriveSync."""


class DriveSyncError(Exception):
    """Base class for all PyDriveSync errors."""


class DriveAPIError(DriveSyncError):
    """Raised when a Google Drive API request fails."""


class DriveAuthenticationError(DriveAPIError):
    """Raised when credentials are missing, invalid or cannot be refreshed."""


class DrivePermissionError(DriveAPIError):
    """Raised when the API refuses access to a resource."""


class DriveNotFoundError(DriveAPIError):
    """Raised when a remote resource does not exist."""


class DriveRateLimitError(DriveAPIError):
    """Raised when the API rate limit is exceeded."""


class DriveNetworkError(DriveAPIError):
    """Raised on transport-level failures (DNS, connection, timeout)."""


class DriveInvalidResponseError(DriveAPIError):
    """Raised when the API returns a body that is not valid JSON."""


class DriveUploadError(DriveAPIError):
    """Raised when an upload or content update does not return a file."""


class DriveConfigError(DriveSyncError):
    """Raised when the OAuth client configuration is unusable."""


class ClientSecretNotFoundError(DriveConfigError):
    """Raised when the client-secret file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Unable to read client secret file: {path}")


class SyncConfigError(DriveSyncError):
    """Raised when the local sync configuration cannot be read or written."""


class SyncConfigNotFoundError(SyncConfigError):
    """Raised when no sync configuration has been saved yet."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No sync configuration at {path}")


class AmbiguousFolderError(DriveSyncError):
    """Raised when several remote folders share the destination name."""

    def __init__(self, name: str, folder_ids: list[str]):
        self.name = name
        self.folder_ids = folder_ids
        super().__init__(
            f"{len(folder_ids)} folders named '{name}' found "
            f"({', '.join(folder_ids)}); rename or remove the extra ones"
        )


class LocalFileError(DriveSyncError):
    """Raised when a local file cannot be read for upload."""


class WatchRegistrationError(DriveSyncError):
    """Raised when a directory cannot be registered with the watcher."""


class UnknownCommandError(DriveSyncError):
    """Raised for a session command outside c/s/a/e/x."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Wrong option: {command}")
