"""
Tests for Change Accumulator.

Requires Python 3.11+.
"""

import dataclasses

import pytest

from watcher.accumulator import ChangeAccumulator, ChangeKind, ChangeSnapshot, is_empty


class TestChangeAccumulator:
    """Test cases for ChangeAccumulator."""

    @pytest.fixture
    def changes(self) -> ChangeAccumulator:
        """Create an empty accumulator."""
        return ChangeAccumulator()

    @pytest.mark.parametrize("kind", list(ChangeKind))
    def test_file_buckets_dedup(self, changes: ChangeAccumulator, kind: ChangeKind):
        changes.add_file("/proj/src/a.ts", kind)
        changes.add_file("/proj/src/a.ts", kind)

        snapshot = changes.snapshot_and_reset()
        bucket = {
            ChangeKind.ADDED: snapshot.files_added,
            ChangeKind.DELETED: snapshot.files_deleted,
            ChangeKind.UPDATED: snapshot.files_updated,
        }[kind]
        assert bucket == ("/proj/src/a.ts",)

    @pytest.mark.parametrize("kind", [ChangeKind.ADDED, ChangeKind.DELETED])
    def test_dir_buckets_dedup(self, changes: ChangeAccumulator, kind: ChangeKind):
        changes.add_dir("/proj/src/components", kind)
        changes.add_dir("/proj/src/components", kind)

        snapshot = changes.snapshot_and_reset()
        bucket = snapshot.dirs_added if kind is ChangeKind.ADDED else snapshot.dirs_deleted
        assert bucket == ("/proj/src/components",)

    def test_dirs_cannot_be_updated(self, changes: ChangeAccumulator):
        with pytest.raises(ValueError):
            changes.add_dir("/proj/src", ChangeKind.UPDATED)

    def test_same_path_in_different_buckets(self, changes: ChangeAccumulator):
        changes.add_file("/proj/src/a.ts", ChangeKind.ADDED)
        changes.add_file("/proj/src/a.ts", ChangeKind.UPDATED)

        snapshot = changes.snapshot_and_reset()
        assert snapshot.files_added == ("/proj/src/a.ts",)
        assert snapshot.files_updated == ("/proj/src/a.ts",)

    def test_order_is_first_seen(self, changes: ChangeAccumulator):
        for name in ("b.ts", "a.ts", "b.ts", "c.ts"):
            changes.add_file(f"/proj/{name}", ChangeKind.ADDED)

        snapshot = changes.snapshot_and_reset()
        assert snapshot.files_added == ("/proj/b.ts", "/proj/a.ts", "/proj/c.ts")

    def test_flags(self, changes: ChangeAccumulator):
        changes.mark_config_updated()
        changes.mark_copy_changes()

        snapshot = changes.snapshot_and_reset()
        assert snapshot.config_updated
        assert snapshot.has_copy_changes
        assert not snapshot.is_empty

    def test_snapshot_resets_buffer(self, changes: ChangeAccumulator):
        changes.add_file("/proj/src/a.ts", ChangeKind.ADDED)
        changes.mark_config_updated()
        assert changes.pending

        first = changes.snapshot_and_reset()
        assert not changes.pending

        second = changes.snapshot_and_reset()
        assert first.files_added == ("/proj/src/a.ts",)
        assert second.is_empty
        assert is_empty(second)

    def test_snapshot_is_unaffected_by_later_writes(self, changes: ChangeAccumulator):
        changes.add_file("/proj/src/a.ts", ChangeKind.ADDED)
        snapshot = changes.snapshot_and_reset()

        changes.add_file("/proj/src/b.ts", ChangeKind.ADDED)
        changes.mark_copy_changes()

        assert snapshot.files_added == ("/proj/src/a.ts",)
        assert not snapshot.has_copy_changes

        later = changes.snapshot_and_reset()
        assert later.files_added == ("/proj/src/b.ts",)
        assert later.has_copy_changes

    def test_buffers_are_reused_cleanly(self, changes: ChangeAccumulator):
        for i in range(3):
            changes.add_file(f"/proj/{i}.ts", ChangeKind.UPDATED)
            snapshot = changes.snapshot_and_reset()
            assert snapshot.files_updated == (f"/proj/{i}.ts",)


class TestChangeSnapshot:
    """Test cases for ChangeSnapshot."""

    def test_default_is_empty(self):
        assert ChangeSnapshot().is_empty

    def test_placeholders_ignored_for_emptiness(self):
        snapshot = ChangeSnapshot(has_build_changes=True, changed_extensions=(".ts",))
        assert snapshot.is_empty

    def test_frozen(self):
        snapshot = ChangeSnapshot(files_added=("/proj/a.ts",))
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.config_updated = True  # type: ignore[misc]
