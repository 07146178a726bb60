"""
BuildWatch Watcher Listener.

Turns raw filesystem notifications into one classified change set per
burst of activity and hands it to the rebuild trigger.
Requires Python 3.11+.
"""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import structlog

from utils.config import WatcherSettings
from utils.logger import LoggerMixin
from watcher.accumulator import ChangeAccumulator, ChangeKind, ChangeSnapshot
from watcher.classifier import (
    CopyTaskMatcher,
    is_config_file,
    is_copy_task_file,
    is_generated_declarations_file,
    is_relevant_file,
    make_copy_task_matcher,
)
from watcher.debouncer import DebounceScheduler
from watcher.errors import ClassificationError, CollaboratorIOError
from watcher.paths import normalize_path, relative_path

DEFAULT_DEBOUNCE_DELAY_MS = 20


class EventKind(str, Enum):
    """Filesystem notifications the listener reacts to."""

    FILE_UPDATED = "file_updated"
    FILE_ADDED = "file_added"
    FILE_DELETED = "file_deleted"
    DIR_ADDED = "dir_added"
    DIR_DELETED = "dir_deleted"


class FileSystemCache(Protocol):
    """Cached filesystem the build reads sources through."""

    async def has_file_changed(self, path: str) -> bool: ...

    def clear_file_cache(self, path: str) -> None: ...

    def clear_dir_cache(self, path: str) -> None: ...

    async def readdir(self, path: str, recursive: bool = True) -> list[str]: ...

    async def read_file(self, path: str, use_cache: bool = True) -> str: ...


class RebuildTrigger(Protocol):
    """Receives each non-empty snapshot; may be sync or async."""

    def __call__(self, snapshot: ChangeSnapshot) -> Any: ...


class EventSource(Protocol):
    """Anything that can deliver the five event kinds to a handler."""

    def subscribe(
        self, kind: EventKind, handler: Callable[[str], Awaitable[None]]
    ) -> None: ...


@dataclass(slots=True)
class ListenerConfig:
    """Project facts the listener classifies against."""

    root_dir: str | None = None
    config_path: str | None = None
    is_copy_task_file: CopyTaskMatcher | None = None
    debounce_delay_ms: int = DEFAULT_DEBOUNCE_DELAY_MS
    logger: structlog.stdlib.BoundLogger | None = None

    def __post_init__(self) -> None:
        if self.root_dir is not None:
            self.root_dir = normalize_path(self.root_dir)
        if self.config_path is not None:
            self.config_path = normalize_path(self.config_path)

    @classmethod
    def from_settings(
        cls, settings: WatcherSettings, root_dir: Path | None = None
    ) -> "ListenerConfig":
        """
        Build a listener config from watcher settings.

        Args:
            settings: Watcher settings
            root_dir: Overrides settings.root_dir when given

        Returns:
            ListenerConfig with a copy task matcher when patterns are set
        """
        root = (root_dir or settings.root_dir or Path.cwd()).resolve()
        config_path = settings.config_path
        if config_path is not None and not config_path.is_absolute():
            config_path = root / config_path

        matcher = None
        if settings.copy_patterns:
            matcher = make_copy_task_matcher(str(root), settings.copy_patterns)

        return cls(
            root_dir=str(root),
            config_path=str(config_path) if config_path is not None else None,
            is_copy_task_file=matcher,
            debounce_delay_ms=settings.debounce_delay_ms,
        )


class WatcherListener(LoggerMixin):
    """
    Coalesces filesystem events into rebuild snapshots.

    Handlers must be called one at a time (the FileWatcher consumer does
    this); the listener itself holds no locks. Each handler logs and
    swallows its own failures so one bad event never takes down the
    watch session or disturbs changes already recorded.
    """

    def __init__(
        self,
        config: ListenerConfig,
        fs: FileSystemCache,
        rebuild: RebuildTrigger,
        scheduler: DebounceScheduler | None = None,
    ) -> None:
        """
        Initialize the listener.

        Args:
            config: Project config path, root and copy task matcher
            fs: Filesystem cache collaborator
            rebuild: Called with every non-empty snapshot
            scheduler: Debounce timer, a fresh one by default
        """
        self._config = config
        self._fs = fs
        self._rebuild = rebuild
        self._scheduler = scheduler or DebounceScheduler()
        self._changes = ChangeAccumulator()
        self._closed = False
        if config.logger is not None:
            self._logger = config.logger

        self._handlers: dict[EventKind, Callable[[str], Awaitable[None]]] = {
            EventKind.FILE_UPDATED: self.on_file_updated,
            EventKind.FILE_ADDED: self.on_file_added,
            EventKind.FILE_DELETED: self.on_file_deleted,
            EventKind.DIR_ADDED: self.on_dir_added,
            EventKind.DIR_DELETED: self.on_dir_deleted,
        }

    def subscribe(self, source: EventSource) -> None:
        """Bind all five handlers on an event source."""
        for kind, handler in self._handlers.items():
            source.subscribe(kind, handler)

    async def handle(self, kind: EventKind | str, path: str) -> None:
        """Dispatch one event to its handler."""
        await self._handlers[EventKind(kind)](path)

    async def on_file_updated(self, path: str) -> None:
        """Handle a file modification."""
        try:
            file_path = normalize_path(path)
            if is_generated_declarations_file(file_path):
                return
            rel_path = self._relative(file_path)

            if is_config_file(file_path, self._config.config_path):
                # A config change means a full rebuild
                self.log.debug("watcher_file_update_config", path=rel_path)
                self._changes.mark_config_updated()
                self._changes.add_file(file_path, ChangeKind.UPDATED)
                self._queue()
            elif self._is_copy_task_file(file_path):
                self.log.debug("watcher_file_update_copy_task", path=rel_path)
                self._changes.mark_copy_changes()
                self._changes.add_file(file_path, ChangeKind.UPDATED)
                self._queue()

            if is_relevant_file(file_path):
                # Editors and checkouts often touch files without changing them
                if not await self._call_fs("has_file_changed", file_path):
                    self.log.debug("watcher_file_unchanged", path=rel_path)
                    return

                self.log.debug("watcher_file_update", path=rel_path)
                self._changes.add_file(file_path, ChangeKind.UPDATED)
                self._queue()
            else:
                await self._call_fs("clear_file_cache", file_path)
                self.log.debug("watcher_clear_file_cache", path=rel_path)

        except Exception as e:
            self._report_failure("file_update", path, e)

    async def on_file_added(self, path: str) -> None:
        """Handle a file creation."""
        try:
            file_path = normalize_path(path)
            if is_generated_declarations_file(file_path):
                return
            rel_path = self._relative(file_path)

            self.log.debug("watcher_file_add", path=rel_path)

            if is_config_file(file_path, self._config.config_path):
                self._changes.mark_config_updated()
                self._changes.add_file(file_path, ChangeKind.UPDATED)
                self._queue()
            elif self._is_copy_task_file(file_path):
                self._changes.mark_copy_changes()
                self._changes.add_file(file_path, ChangeKind.ADDED)
                self._queue()

            if is_relevant_file(file_path):
                # Warm the cache with the content that is on disk right now
                await self._call_fs("read_file", file_path, use_cache=False)
                self._changes.add_file(file_path, ChangeKind.ADDED)
                self._queue()
            else:
                await self._call_fs("clear_file_cache", file_path)
                self.log.debug("watcher_clear_file_cache", path=rel_path)

        except Exception as e:
            self._report_failure("file_add", path, e)

    async def on_file_deleted(self, path: str) -> None:
        """Handle a file deletion."""
        try:
            file_path = normalize_path(path)
            if is_generated_declarations_file(file_path):
                return
            rel_path = self._relative(file_path)

            self.log.debug("watcher_file_delete", path=rel_path)

            await self._call_fs("clear_file_cache", file_path)

            if is_config_file(file_path, self._config.config_path):
                self._changes.mark_config_updated()
                self._changes.add_file(file_path, ChangeKind.UPDATED)
                self._queue()
            elif self._is_copy_task_file(file_path):
                self._changes.mark_copy_changes()
                self._changes.add_file(file_path, ChangeKind.DELETED)
                self._queue()

            if is_relevant_file(file_path):
                self._changes.add_file(file_path, ChangeKind.DELETED)
                self._queue()

        except Exception as e:
            self._report_failure("file_delete", path, e)

    async def on_dir_added(self, path: str) -> None:
        """
        Handle a directory creation.

        The OS reports only the directory, so its contents are listed
        here and recorded as added files.
        """
        try:
            dir_path = normalize_path(path)
            if is_generated_declarations_file(dir_path):
                return
            rel_path = self._relative(dir_path)

            self.log.debug("watcher_dir_add", path=rel_path)

            await self._call_fs("clear_dir_cache", dir_path)

            added_items = await self._call_fs("readdir", dir_path, recursive=True)
            for item in added_items:
                file_path = normalize_path(item)
                if is_generated_declarations_file(file_path):
                    continue
                self._changes.add_file(file_path, ChangeKind.ADDED)
            self._changes.add_dir(dir_path, ChangeKind.ADDED)

            if self._is_copy_task_file(dir_path):
                self._changes.mark_copy_changes()

            self._queue()

        except Exception as e:
            self._report_failure("dir_add", path, e)

    async def on_dir_deleted(self, path: str) -> None:
        """
        Handle a directory deletion.

        Only the directory itself is recorded; files that lived under
        it are not listed individually.
        """
        try:
            dir_path = normalize_path(path)
            if is_generated_declarations_file(dir_path):
                return
            rel_path = self._relative(dir_path)

            self.log.debug("watcher_dir_delete", path=rel_path)

            await self._call_fs("clear_dir_cache", dir_path)

            self._changes.add_dir(dir_path, ChangeKind.DELETED)

            if self._is_copy_task_file(dir_path):
                self._changes.mark_copy_changes()

            self._queue()

        except Exception as e:
            self._report_failure("dir_delete", path, e)

    async def start_rebuild_cycle(self) -> None:
        """Snapshot the pending changes and trigger a rebuild if any."""
        if self._closed:
            return
        try:
            snapshot = self._changes.snapshot_and_reset()

            if snapshot.is_empty:
                self.log.debug("watcher_rebuild_skipped")
                return

            self.log.debug(
                "watcher_rebuild",
                dirs_added=len(snapshot.dirs_added),
                dirs_deleted=len(snapshot.dirs_deleted),
                files_added=len(snapshot.files_added),
                files_deleted=len(snapshot.files_deleted),
                files_updated=len(snapshot.files_updated),
                config_updated=snapshot.config_updated,
                has_copy_changes=snapshot.has_copy_changes,
            )

            result = self._rebuild(snapshot)
            if inspect.isawaitable(result):
                await result

        except Exception as e:
            self.log.error(
                "watcher_rebuild_failed",
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )

    async def flush(self) -> None:
        """Run a rebuild cycle now instead of waiting for the timer."""
        self._scheduler.cancel()
        await self.start_rebuild_cycle()

    def close(self) -> None:
        """Cancel any pending rebuild and stop scheduling new ones."""
        self._closed = True
        self._scheduler.cancel()

    @property
    def has_pending_changes(self) -> bool:
        """Check if changes are waiting for the next cycle."""
        return self._changes.pending

    @property
    def rebuild_pending(self) -> bool:
        """Check if the debounce timer is armed."""
        return self._scheduler.pending

    def _queue(self) -> None:
        if self._closed:
            return
        self._scheduler.schedule(
            self.start_rebuild_cycle, self._config.debounce_delay_ms
        )

    def _relative(self, path: str) -> str:
        return relative_path(path, self._config.root_dir)

    def _is_copy_task_file(self, path: str) -> bool:
        try:
            return bool(is_copy_task_file(path, self._config.is_copy_task_file))
        except Exception as e:
            raise ClassificationError(path, f"copy task matcher failed: {e}") from e

    async def _call_fs(self, operation: str, path: str, **kwargs: Any) -> Any:
        """Call the cache collaborator, wrapping any failure."""
        try:
            result = getattr(self._fs, operation)(path, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            raise CollaboratorIOError(operation, path, e) from e

    def _report_failure(self, handler: str, path: object, error: Exception) -> None:
        self.log.error(
            f"watcher_{handler}_failed",
            path=str(path),
            error_type=type(error).__name__,
            error=str(error),
        )
