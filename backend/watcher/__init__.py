"""
BuildWatch Watcher Package.

Coalesces file system events into rebuild snapshots.
Requires Python 3.11+.
"""

from watcher.accumulator import ChangeAccumulator, ChangeKind, ChangeSnapshot, is_empty
from watcher.debouncer import DebounceScheduler
from watcher.errors import ClassificationError, CollaboratorIOError, WatcherError
from watcher.file_watcher import FileWatcher, WatchEventHandler
from watcher.listener import (
    EventKind,
    FileSystemCache,
    ListenerConfig,
    RebuildTrigger,
    WatcherListener,
)
from watcher.paths import normalize_path

__all__ = [
    "ChangeAccumulator",
    "ChangeKind",
    "ChangeSnapshot",
    "ClassificationError",
    "CollaboratorIOError",
    "DebounceScheduler",
    "EventKind",
    "FileSystemCache",
    "FileWatcher",
    "ListenerConfig",
    "RebuildTrigger",
    "WatchEventHandler",
    "WatcherError",
    "WatcherListener",
    "is_empty",
    "normalize_path",
]
