"""
BuildWatch Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import asyncio
from pathlib import Path

import pytest

from watcher.accumulator import ChangeSnapshot
from watcher.listener import ListenerConfig, WatcherListener

ROOT_DIR = "/proj"
CONFIG_PATH = "/proj/stencil.config.ts"

# Longer than the listener delay, short enough to keep tests quick
SETTLE_SECONDS = 0.1


class FakeFileSystem:
    """In-memory stand-in for the file cache collaborator."""

    def __init__(self) -> None:
        self.changed: dict[str, bool] = {}
        self.listings: dict[str, list[str]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_on: set[str] = set()

    def _record(self, operation: str, path: str) -> None:
        self.calls.append((operation, path))
        if operation in self.fail_on:
            raise OSError(f"{operation} failed for {path}")

    async def has_file_changed(self, path: str) -> bool:
        self._record("has_file_changed", path)
        return self.changed.get(path, True)

    def clear_file_cache(self, path: str) -> None:
        self._record("clear_file_cache", path)

    def clear_dir_cache(self, path: str) -> None:
        self._record("clear_dir_cache", path)

    async def readdir(self, path: str, recursive: bool = True) -> list[str]:
        self._record("readdir", path)
        return list(self.listings.get(path, []))

    async def read_file(self, path: str, use_cache: bool = True) -> str:
        self._record("read_file" if use_cache else "read_file_fresh", path)
        return ""

    def operations(self, path: str) -> list[str]:
        """Operations called for one path, in order."""
        return [op for op, p in self.calls if p == path]


class RecordingRebuild:
    """Rebuild trigger that keeps every snapshot it receives."""

    def __init__(self) -> None:
        self.snapshots: list[ChangeSnapshot] = []

    def __call__(self, snapshot: ChangeSnapshot) -> None:
        self.snapshots.append(snapshot)


async def settle() -> None:
    """Wait out the debounce window."""
    await asyncio.sleep(SETTLE_SECONDS)


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    """Create a fake file cache."""
    return FakeFileSystem()


@pytest.fixture
def rebuild() -> RecordingRebuild:
    """Create a recording rebuild trigger."""
    return RecordingRebuild()


@pytest.fixture
def listener_config() -> ListenerConfig:
    """Listener config for a project at /proj with a src/assets copy task."""
    return ListenerConfig(
        root_dir=ROOT_DIR,
        config_path=CONFIG_PATH,
        is_copy_task_file=lambda p: p.startswith("/proj/src/assets/"),
        debounce_delay_ms=20,
    )


@pytest.fixture
def listener(
    listener_config: ListenerConfig,
    fake_fs: FakeFileSystem,
    rebuild: RecordingRebuild,
) -> WatcherListener:
    """Create a listener wired to the fakes."""
    return WatcherListener(listener_config, fake_fs, rebuild)


@pytest.fixture
def temp_project(tmp_path: Path) -> Path:
    """Create a small project tree on disk."""
    src = tmp_path / "src"
    (src / "components" / "sub").mkdir(parents=True)
    (src / "components" / "a.ts").write_text("export const a = 1;\n")
    (src / "components" / "sub" / "b.css").write_text(".b { color: red; }\n")
    (src / "index.html").write_text("<html></html>\n")
    (tmp_path / "stencil.config.ts").write_text("export const config = {};\n")
    return tmp_path
