"""Interactive session: configure, show, add path, execute, exit."""

import logging
import threading
from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

import click

from .api import DriveClient
from .exceptions import SyncConfigError, UnknownCommandError
from .output import OutputFormatter
from .sync.engine import SyncEngine
from .sync.operations import ReconcileResult
from .sync.state import SyncConfig, add_watched_path, record_sync_time, save_sync_config
from .sync.watcher import WatchLoop
from .utils import DEFAULT_FOLDER_NAME, DEFAULT_WATCH_PATH, normalize_watch_path

logger = logging.getLogger(__name__)

MENU_CONFIGURED = (
    "Options (case insensitive):\n"
    "  c - Configure (remove previous configuration)\n"
    "  s - Show Configuration\n"
    "  a - Add path to listen\n"
    "  e - Execute\n"
    "  x - Exit"
)

MENU_UNCONFIGURED = "Options:\n  c - Configure\n  x - Exit"


class Command(str, Enum):
    """Session commands."""

    CONFIGURE = "c"
    SHOW = "s"
    ADD_PATH = "a"
    EXECUTE = "e"
    EXIT = "x"

    @classmethod
    def parse(cls, raw: str) -> "Command":
        """Parse user input such as ``e``, ``E`` or ``-e``.

        Raises:
            UnknownCommandError: If the input is not a known command
        """
        value = raw.replace("-", "").strip().lower()
        try:
            return cls(value)
        except ValueError:
            raise UnknownCommandError(raw) from None


class SessionResult(str, Enum):
    """What the caller should do after a command."""

    MENU = "menu"
    """Show the menu again"""

    DONE = "done"
    """The watch loop finished"""

    EXIT = "exit"
    """Explicit exit"""


class Session:
    """Dispatches session commands against the sync configuration.

    The session owns the SyncConfig and is the only writer of the config
    file; the watch loop writes through the ``on_synced`` callback while the
    session itself is blocked in :meth:`execute`.
    """

    def __init__(
        self,
        sync_config: SyncConfig,
        config_path: Path,
        client_factory: Callable[[], DriveClient],
        output: Optional[OutputFormatter] = None,
        app_files: Iterable[str] = (),
        debounce_seconds: float = 0.0,
        prompt: Callable[..., Any] = click.prompt,
        watch_loop_factory: Callable[..., WatchLoop] = WatchLoop,
    ):
        """Initialize session.

        Args:
            sync_config: Loaded (or empty) sync configuration
            config_path: Where the configuration is saved
            client_factory: Creates an authorized Drive client on first use
            output: Output formatter
            app_files: Reserved file names that are never uploaded
            debounce_seconds: Debounce window for the watch loop
            prompt: Prompt function (``click.prompt`` signature)
            watch_loop_factory: Creates the watch loop
        """
        self.sync_config = sync_config
        self.config_path = config_path
        self.client_factory = client_factory
        self.output = output or OutputFormatter()
        self.app_files = tuple(app_files)
        self.debounce_seconds = debounce_seconds
        self.prompt = prompt
        self.watch_loop_factory = watch_loop_factory
        self.stop_event = threading.Event()

    def save(self) -> None:
        save_sync_config(self.sync_config, self.config_path)

    def stop(self) -> None:
        """Stop a running watch loop."""
        self.stop_event.set()

    def show_menu(self) -> None:
        if self.sync_config.is_configured:
            self.output.print(MENU_CONFIGURED)
        else:
            self.output.print(MENU_UNCONFIGURED)

    def run_menu(self) -> SessionResult:
        """Show the menu and dispatch commands until exit or execute ends."""
        while True:
            self.show_menu()
            raw = self.prompt("Option", default="", show_default=False)
            result = self.run_command(raw)
            if result != SessionResult.MENU:
                return result

    def run_command(self, raw: str) -> SessionResult:
        """Run one command.

        Args:
            raw: Command as typed or passed on the command line

        Returns:
            SessionResult telling the caller what to do next

        Raises:
            UnknownCommandError: If the command is not recognised
        """
        command = Command.parse(raw)
        logger.debug(f"Running command {command.name}")

        if command == Command.EXECUTE:
            return self.execute()
        if command == Command.EXIT:
            return SessionResult.EXIT
        if command == Command.CONFIGURE:
            self.configure()
        elif command == Command.ADD_PATH:
            self.add_path()
        elif command == Command.SHOW:
            self.show()
        return SessionResult.MENU

    def configure(self) -> SyncConfig:
        """Create a new configuration, replacing the previous one."""
        folder_name = self.prompt(
            "Name for the folder to save files", default=DEFAULT_FOLDER_NAME
        )
        self.sync_config = SyncConfig(
            destination_folder_name=folder_name.strip() or DEFAULT_FOLDER_NAME
        )
        self.save()
        self.ensure_watch_path()
        return self.sync_config

    def ensure_watch_path(self) -> None:
        """Prompt for a first watch path if none is configured."""
        if self.sync_config.watched_paths:
            return
        raw = self.prompt("Path to watch", default=DEFAULT_WATCH_PATH)
        self.sync_config.watched_paths = [normalize_watch_path(raw)]
        self.save()

    def add_path(self) -> bool:
        """Add another watch path.

        Returns:
            True if the path was added and saved
        """
        if not self.sync_config.is_configured:
            logger.warning("Add path requested before configuration")
            self.output.warning("Launch the configure option (c) first")
            return False

        raw = self.prompt("Path to watch", default=DEFAULT_WATCH_PATH)
        watch_path = normalize_watch_path(raw)
        if not add_watched_path(self.sync_config, watch_path):
            logger.error(f"The folder is already in config: {watch_path}")
            self.output.error(f"The folder is already in config: {watch_path}")
            return False

        self.save()
        self.output.success(f"Added {watch_path}")
        return True

    def show(self) -> None:
        sync_config = self.sync_config
        self.output.print_summary(
            "Actual configuration",
            [
                ("Destination folder in Drive", sync_config.destination_folder_name),
                ("Last synchronization time", sync_config.last_sync_timestamp),
                ("Local watching folders", ", ".join(sync_config.watched_paths)),
            ],
        )

    def _record_sync(self, result: ReconcileResult) -> None:
        # The remote write already succeeded; a failed save must not stop syncing
        try:
            record_sync_time(self.sync_config, self.config_path)
        except SyncConfigError as e:
            logger.error(f"Cannot update last sync time: {e}")
            self.output.warning(f"Cannot update last sync time: {e}")

    def execute(self) -> SessionResult:
        """Sweep the watched paths, then watch them until stopped."""
        if not self.sync_config.is_configured:
            self.output.warning("Launch the configure option (c) first")
            return SessionResult.MENU

        client = self.client_factory()
        engine = SyncEngine(
            client,
            self.output,
            app_files=self.app_files,
            on_synced=self._record_sync,
        )
        folder = engine.resolve_destination_folder(
            self.sync_config.destination_folder_name
        )
        self.ensure_watch_path()

        stats = engine.sweep(self.sync_config.watched_paths, folder)
        logger.debug(f"Sweep finished: {stats}")

        loop = self.watch_loop_factory(
            self.sync_config.watched_paths,
            on_change=lambda path: engine.sync_path(path, folder),
            app_files=self.app_files,
            debounce_seconds=self.debounce_seconds,
        )
        self.output.info("Watching for changes. Press Ctrl+C to stop.")
        loop.run(self.stop_event)
        return SessionResult.DONE
