"""Live watch loop over the watched directories.

The OS notifier (watchdog) pushes events onto a queue. A single consumer
thread drains that queue and reconciles each written file, one at a time,
until the stop token is set.
"""

import logging
import os
import queue
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..exceptions import WatchRegistrationError
from ..utils import DEBOUNCE_MAX_DELAY_FACTOR, DEFAULT_POLL_INTERVAL
from .filters import should_sync

logger = logging.getLogger(__name__)


class WatchOperation(str, Enum):
    """Kind of change reported for a path."""

    WRITE = "write"
    CREATE = "create"
    DELETE = "delete"
    MOVE = "move"


_OPERATIONS = {
    EVENT_TYPE_MODIFIED: WatchOperation.WRITE,
    EVENT_TYPE_CREATED: WatchOperation.CREATE,
    EVENT_TYPE_DELETED: WatchOperation.DELETE,
    EVENT_TYPE_MOVED: WatchOperation.MOVE,
}


@dataclass(frozen=True)
class WatchEvent:
    """A change to one file."""

    path: str
    operation: WatchOperation


@dataclass(frozen=True)
class WatchError:
    """An error reported by the notifier side."""

    error: Exception


QueueItem = Union[WatchEvent, WatchError]


class QueueEventHandler(FileSystemEventHandler):
    """Translates watchdog events into WatchEvent items on a queue."""

    def __init__(self, events: "queue.Queue[QueueItem]"):
        super().__init__()
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        operation = _OPERATIONS.get(event.event_type)
        if operation is None:
            return

        raw_path: Any = event.src_path
        if operation == WatchOperation.MOVE:
            raw_path = getattr(event, "dest_path", None) or raw_path
        try:
            path = os.fsdecode(raw_path)
        except (TypeError, UnicodeDecodeError) as e:
            self.events.put(WatchError(e))
            return

        self.events.put(WatchEvent(path, operation))


class WatchLoop:
    """Watches directories and reconciles written files until stopped.

    Examples:
        >>> loop = WatchLoop(["/home/user/Documents"], on_change=print)
        >>> loop.run()  # blocks until loop.stop() or Ctrl+C
    """

    def __init__(
        self,
        watched_paths: Iterable[str],
        on_change: Callable[[str], Any],
        app_files: Iterable[str] = (),
        debounce_seconds: float = 0.0,
        max_delay_seconds: Optional[float] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        observer_factory: Callable[[], Any] = Observer,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the watch loop.

        Args:
            watched_paths: Directories to watch (non-recursive)
            on_change: Called with the path of each written file to reconcile
            app_files: Reserved file names that are never reconciled
            debounce_seconds: Writes to the same path within this window are
                coalesced into one call (0 reconciles every write)
            max_delay_seconds: Longest a path can stay pending while writes keep
                arriving (defaults to ten debounce windows)
            poll_interval: Maximum time between stop-token checks
            observer_factory: Creates the watchdog observer
            clock: Monotonic time source
        """
        self.watched_paths = list(watched_paths)
        self.on_change = on_change
        self.app_files = tuple(app_files)
        self.debounce_seconds = max(0.0, debounce_seconds)
        if max_delay_seconds is None:
            max_delay_seconds = self.debounce_seconds * DEBOUNCE_MAX_DELAY_FACTOR
        self.max_delay_seconds = max(self.debounce_seconds, max_delay_seconds)
        self.poll_interval = poll_interval
        self.observer_factory = observer_factory
        self.clock = clock

        self.events: "queue.Queue[QueueItem]" = queue.Queue()
        self.stop_event = threading.Event()
        # path -> (first pending write, flush deadline)
        self._pending: dict[str, tuple[float, float]] = {}
        self._error: Optional[BaseException] = None

    def stop(self) -> None:
        """Ask the loop to finish."""
        self.stop_event.set()

    def _register(self) -> Any:
        observer = self.observer_factory()
        handler = QueueEventHandler(self.events)
        for watched_path in self.watched_paths:
            logger.info(f"add to watch: {watched_path}")
            if not os.path.isdir(watched_path):
                raise WatchRegistrationError(
                    f"Cannot watch {watched_path}: not a directory"
                )
            try:
                observer.schedule(handler, watched_path, recursive=False)
            except OSError as e:
                raise WatchRegistrationError(
                    f"Cannot watch {watched_path}: {e}"
                ) from e
        return observer

    def _accept(self, item: QueueItem) -> None:
        if isinstance(item, WatchError):
            logger.error(f"watch error: {item.error}")
            return
        if item.operation != WatchOperation.WRITE:
            logger.debug(f"Ignoring {item.operation.value} event: {item.path}")
            return
        if not should_sync(item.path, self.app_files):
            logger.debug(f"Ignoring excluded path: {item.path}")
            return
        now = self.clock()
        # Re-inserting moves the path to the end so flush order follows last write
        first_seen, _ = self._pending.pop(item.path, (now, now))
        deadline = min(
            now + self.debounce_seconds, first_seen + self.max_delay_seconds
        )
        self._pending[item.path] = (first_seen, deadline)

    def _flush(self) -> None:
        now = self.clock()
        for path, (_, deadline) in list(self._pending.items()):
            if deadline <= now:
                del self._pending[path]
                self.on_change(path)

    def _next_timeout(self) -> float:
        if not self._pending:
            return self.poll_interval
        wait = min(deadline for _, deadline in self._pending.values()) - self.clock()
        return min(max(wait, 0.0), self.poll_interval)

    def _consume(self) -> None:
        try:
            while not self.stop_event.is_set():
                try:
                    item = self.events.get(timeout=self._next_timeout())
                except queue.Empty:
                    pass
                else:
                    self._accept(item)
                self._flush()
        except Exception as e:
            # Handed to run(), which re-raises in the calling thread
            self._error = e
            self.stop_event.set()

        if self._pending:
            logger.debug(f"Dropping {len(self._pending)} pending change(s) on stop")

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Watch until the stop token is set.

        Args:
            stop_event: Token to use instead of the loop's own

        Raises:
            WatchRegistrationError: If a directory cannot be watched
            DriveSyncError: If reconciling a change fails
        """
        if stop_event is not None:
            self.stop_event = stop_event

        observer = self._register()
        try:
            observer.start()
        except OSError as e:
            raise WatchRegistrationError(f"Cannot start watcher: {e}") from e
        consumer = threading.Thread(
            target=self._consume, name="pydrivesync-watch", daemon=True
        )
        consumer.start()

        try:
            while not self.stop_event.wait(self.poll_interval):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping watch loop")
        finally:
            self.stop_event.set()
            observer.stop()
            observer.join()
            consumer.join()

        if self._error is not None:
            raise self._error
