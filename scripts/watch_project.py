#!/usr/bin/env python3
"""
BuildWatch Project Watcher Script.

Watches a project directory and logs one rebuild snapshot per burst
of file activity.
Requires Python 3.11+.

Usage:
    python scripts/watch_project.py /path/to/project --config stencil.config.ts
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from fscache.file_cache import FileCache
from utils.config import get_settings
from utils.logger import configure_logging, get_logger
from watcher.accumulator import ChangeSnapshot
from watcher.file_watcher import FileWatcher
from watcher.listener import ListenerConfig, WatcherListener


logger = get_logger("watch_project")


def log_rebuild(snapshot: ChangeSnapshot) -> None:
    """Rebuild trigger that only reports what would be rebuilt."""
    logger.info(
        "rebuild_requested",
        config_updated=snapshot.config_updated,
        has_copy_changes=snapshot.has_copy_changes,
        dirs_added=list(snapshot.dirs_added),
        dirs_deleted=list(snapshot.dirs_deleted),
        files_added=list(snapshot.files_added),
        files_deleted=list(snapshot.files_deleted),
        files_updated=list(snapshot.files_updated),
    )


async def watch_project(
    root_path: Path,
    config_path: Path | None = None,
    copy_patterns: list[str] | None = None,
    debounce_delay_ms: int | None = None,
) -> None:
    """
    Watch a project until cancelled.

    Args:
        root_path: Project root directory
        config_path: Project config file, relative to root or absolute
        copy_patterns: Copy task glob patterns, relative to root
        debounce_delay_ms: Quiet period before a snapshot is taken
    """
    settings = get_settings().watcher.model_copy()
    if config_path is not None:
        settings.config_path = config_path
    if copy_patterns:
        settings.copy_patterns = copy_patterns
    if debounce_delay_ms is not None:
        settings.debounce_delay_ms = debounce_delay_ms

    config = ListenerConfig.from_settings(settings, root_dir=root_path)
    listener = WatcherListener(config, FileCache(), log_rebuild)

    watcher = FileWatcher(Path(config.root_dir), recursive=settings.recursive)
    listener.subscribe(watcher)

    logger.info(
        "watching_project",
        root=config.root_dir,
        config_path=config.config_path,
        debounce_delay_ms=config.debounce_delay_ms,
    )

    try:
        async with watcher:
            await asyncio.Event().wait()
    finally:
        # Queued events are delivered by the watcher exit first
        listener.close()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Watch a project and report coalesced rebuild snapshots",
    )
    parser.add_argument(
        "path",
        type=Path,
        help="Path to the project root",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Project config file; changing it requests a full rebuild",
    )
    parser.add_argument(
        "--copy",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Glob pattern of files copied verbatim (repeatable)",
    )
    parser.add_argument(
        "--delay",
        type=int,
        default=None,
        help="Debounce delay in milliseconds",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level (e.g. DEBUG)",
    )

    args = parser.parse_args()

    if not args.path.is_dir():
        print(f"Error: Path is not a directory: {args.path}")
        sys.exit(1)

    configure_logging(args.log_level)

    try:
        asyncio.run(watch_project(
            args.path,
            config_path=args.config,
            copy_patterns=args.copy,
            debounce_delay_ms=args.delay,
        ))
    except KeyboardInterrupt:
        print("\nStopped")


if __name__ == "__main__":
    main()
