"""
BuildWatch Change Accumulator.

Collects one debounce cycle's worth of changes and hands them off
as an immutable snapshot.
Requires Python 3.11+.
"""

from dataclasses import dataclass, field
from enum import Enum


class ChangeKind(str, Enum):
    """Bucket a path is recorded in."""

    ADDED = "added"
    DELETED = "deleted"
    UPDATED = "updated"


@dataclass(frozen=True, slots=True)
class ChangeSnapshot:
    """
    Frozen result of one debounce cycle.

    The trailing fields are filled in by the rebuild pipeline; the
    watcher always leaves them empty.
    """

    dirs_added: tuple[str, ...] = ()
    dirs_deleted: tuple[str, ...] = ()
    files_added: tuple[str, ...] = ()
    files_deleted: tuple[str, ...] = ()
    files_updated: tuple[str, ...] = ()
    config_updated: bool = False
    has_copy_changes: bool = False

    files_changed: tuple[str, ...] = ()
    changed_extensions: tuple[str, ...] = ()
    has_build_changes: bool = False
    has_script_changes: bool = False
    has_style_changes: bool = False

    @property
    def is_empty(self) -> bool:
        """Check if there is nothing worth rebuilding for."""
        return not (
            self.config_updated
            or self.has_copy_changes
            or self.dirs_added
            or self.dirs_deleted
            or self.files_added
            or self.files_deleted
            or self.files_updated
        )


def is_empty(snapshot: ChangeSnapshot) -> bool:
    """Check if a snapshot should be discarded."""
    return snapshot.is_empty


@dataclass(slots=True)
class _ChangeBuffer:
    """Live, mutable counterpart of a snapshot."""

    # dicts keep first-seen order and give O(1) dedup
    dirs_added: dict[str, None] = field(default_factory=dict)
    dirs_deleted: dict[str, None] = field(default_factory=dict)
    files_added: dict[str, None] = field(default_factory=dict)
    files_deleted: dict[str, None] = field(default_factory=dict)
    files_updated: dict[str, None] = field(default_factory=dict)
    config_updated: bool = False
    has_copy_changes: bool = False

    def freeze(self) -> ChangeSnapshot:
        return ChangeSnapshot(
            dirs_added=tuple(self.dirs_added),
            dirs_deleted=tuple(self.dirs_deleted),
            files_added=tuple(self.files_added),
            files_deleted=tuple(self.files_deleted),
            files_updated=tuple(self.files_updated),
            config_updated=self.config_updated,
            has_copy_changes=self.has_copy_changes,
        )

    def clear(self) -> None:
        self.dirs_added.clear()
        self.dirs_deleted.clear()
        self.files_added.clear()
        self.files_deleted.clear()
        self.files_updated.clear()
        self.config_updated = False
        self.has_copy_changes = False

    def __bool__(self) -> bool:
        return bool(
            self.config_updated
            or self.has_copy_changes
            or self.dirs_added
            or self.dirs_deleted
            or self.files_added
            or self.files_deleted
            or self.files_updated
        )


class ChangeAccumulator:
    """
    Deduplicating buffer of pending changes.

    Not synchronized: callers must serialize access. Two buffers are
    kept and swapped on snapshot, so writers only ever see either the
    full old buffer or a clean new one.
    """

    def __init__(self) -> None:
        self._active = _ChangeBuffer()
        self._spare = _ChangeBuffer()

    def add_file(self, path: str, kind: ChangeKind) -> None:
        """Record a file path in the given bucket."""
        match kind:
            case ChangeKind.ADDED:
                self._active.files_added[path] = None
            case ChangeKind.DELETED:
                self._active.files_deleted[path] = None
            case ChangeKind.UPDATED:
                self._active.files_updated[path] = None
            case _:
                raise ValueError(f"Unknown change kind: {kind!r}")

    def add_dir(self, path: str, kind: ChangeKind) -> None:
        """Record a directory path in the given bucket."""
        match kind:
            case ChangeKind.ADDED:
                self._active.dirs_added[path] = None
            case ChangeKind.DELETED:
                self._active.dirs_deleted[path] = None
            case _:
                raise ValueError(f"Directories cannot be recorded as {kind!r}")

    def mark_config_updated(self) -> None:
        self._active.config_updated = True

    def mark_copy_changes(self) -> None:
        self._active.has_copy_changes = True

    def snapshot_and_reset(self) -> ChangeSnapshot:
        """
        Freeze the pending changes and start a new cycle.

        Returns:
            Snapshot of everything recorded since the last call
        """
        current, self._active = self._active, self._spare
        snapshot = current.freeze()
        current.clear()
        self._spare = current
        return snapshot

    @property
    def pending(self) -> bool:
        """Check if anything has been recorded this cycle."""
        return bool(self._active)
