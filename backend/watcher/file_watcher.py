"""
BuildWatch File Watcher.

Cross-platform file system monitoring using watchdog, delivered to
async subscribers one event at a time.
Requires Python 3.11+.
"""

import asyncio
import os
from collections import defaultdict
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from watchdog.events import (
    DirModifiedEvent,
    FileModifiedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
    FileSystemMovedEvent,
)
from watchdog.observers import Observer

from utils.logger import LoggerMixin
from watcher.listener import EventKind

EventHandler = Callable[[str], Awaitable[None]]


class WatchEventHandler(FileSystemEventHandler, LoggerMixin):
    """
    Translates watchdog events into watcher event kinds.

    Runs on the observer thread and only touches the event loop through
    call_soon_threadsafe.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[tuple[EventKind, str]],
    ) -> None:
        """
        Initialize the handler.

        Args:
            loop: Loop owning the queue
            queue: Receives (kind, path) pairs
        """
        super().__init__()
        self._loop = loop
        self._queue = queue

    def _enqueue(self, kind: EventKind, path: str | bytes) -> None:
        try:
            self._loop.call_soon_threadsafe(
                self._queue.put_nowait, (kind, os.fsdecode(path))
            )
        except RuntimeError:
            # Loop already closed during shutdown
            self.log.debug("event_dropped", kind=kind.value, path=os.fsdecode(path))

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file/directory creation."""
        kind = EventKind.DIR_ADDED if event.is_directory else EventKind.FILE_ADDED
        self._enqueue(kind, event.src_path)

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file modification; directory mtime changes carry no news."""
        if event.is_directory:
            return
        self._enqueue(EventKind.FILE_UPDATED, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle file/directory deletion."""
        kind = EventKind.DIR_DELETED if event.is_directory else EventKind.FILE_DELETED
        self._enqueue(kind, event.src_path)

    def on_moved(self, event: FileSystemMovedEvent) -> None:
        """Handle a move/rename as a delete followed by an add."""
        if event.is_directory:
            self._enqueue(EventKind.DIR_DELETED, event.src_path)
            self._enqueue(EventKind.DIR_ADDED, event.dest_path)
        else:
            self._enqueue(EventKind.FILE_DELETED, event.src_path)
            self._enqueue(EventKind.FILE_ADDED, event.dest_path)


class FileWatcher(LoggerMixin):
    """
    Watches a directory tree and feeds subscribers.

    Events from the observer thread are queued and handed to subscribers
    strictly one at a time by a single consumer task, so a subscriber
    never sees two of its handlers running concurrently.
    """

    def __init__(self, root_path: Path, recursive: bool = True) -> None:
        """
        Initialize the file watcher.

        Args:
            root_path: Root directory to watch
            recursive: Whether to watch subdirectories
        """
        self._root_path = root_path
        self._recursive = recursive
        self._subscribers: dict[EventKind, list[EventHandler]] = defaultdict(list)

        self._queue: asyncio.Queue[tuple[EventKind, str]] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._observer: Any = None
        self._running = False

    def subscribe(self, kind: EventKind, handler: EventHandler) -> None:
        """Register an async handler for one event kind."""
        self._subscribers[EventKind(kind)].append(handler)

    def start(self) -> None:
        """Start watching; must be called from a running event loop."""
        if self._running:
            return

        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._consumer = loop.create_task(self._consume())

        self._observer = Observer()
        self._observer.schedule(
            WatchEventHandler(loop, self._queue),
            str(self._root_path),
            recursive=self._recursive,
        )
        self._observer.start()
        self._running = True

        self.log.info(
            "file_watcher_started",
            path=str(self._root_path),
            recursive=self._recursive,
        )

    async def stop(self) -> None:
        """Stop watching, delivering events that were already queued."""
        if not self._running:
            return

        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join, 5.0)
            self._observer = None

        await self.drain()

        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

        self._running = False
        self.log.info("file_watcher_stopped")

    async def drain(self) -> None:
        """Wait until every queued event has been delivered."""
        if self._queue is not None:
            await self._queue.join()

    async def dispatch(self, kind: EventKind, path: str) -> None:
        """Deliver one event to every handler subscribed to its kind."""
        for handler in self._subscribers.get(EventKind(kind), []):
            try:
                await handler(path)
            except Exception as e:
                self.log.error(
                    "event_handler_failed",
                    kind=EventKind(kind).value,
                    path=path,
                    error=str(e),
                )

    async def _consume(self) -> None:
        assert self._queue is not None
        while True:
            kind, path = await self._queue.get()
            try:
                await self.dispatch(kind, path)
            finally:
                self._queue.task_done()

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    @property
    def pending_events(self) -> int:
        """Get number of queued, undelivered events."""
        return self._queue.qsize() if self._queue is not None else 0

    async def __aenter__(self) -> "FileWatcher":
        """Async context manager entry."""
        self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.stop()
