"""
BuildWatch File Cache.

In-memory cache of source file contents with content-hash based
change detection.
Requires Python 3.11+.
"""

import asyncio
import hashlib
import os
from dataclasses import dataclass
from typing import Any

from utils.logger import LoggerMixin
from watcher.paths import normalize_path


@dataclass(slots=True)
class CachedFile:
    """Cached content of one file."""

    content: str
    digest: str


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _list_files(path: str, recursive: bool) -> list[str]:
    if not os.path.isdir(path):
        raise NotADirectoryError(path)

    if not recursive:
        with os.scandir(path) as entries:
            return sorted(normalize_path(e.path) for e in entries if e.is_file())

    files: list[str] = []
    for dir_path, _dir_names, file_names in os.walk(path):
        files.extend(normalize_path(os.path.join(dir_path, name)) for name in file_names)
    return sorted(files)


class FileCache(LoggerMixin):
    """
    Caches file contents the way the build reads them.

    Change detection compares SHA-256 digests, so a save that rewrites
    identical bytes is not reported as a change. Blocking reads run in
    a worker thread.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        """
        Initialize the file cache.

        Args:
            encoding: Text encoding of source files
        """
        self._encoding = encoding
        self._files: dict[str, CachedFile] = {}
        self._dirs: dict[tuple[str, bool], list[str]] = {}

    async def read_file(self, path: str, use_cache: bool = True) -> str:
        """
        Read a file, from the cache when allowed.

        Args:
            path: Absolute file path
            use_cache: False forces a fresh read that refreshes the cache

        Returns:
            File content
        """
        path = normalize_path(path)
        if use_cache:
            cached = self._files.get(path)
            if cached is not None:
                return cached.content

        entry = await self._load(path)
        return entry.content

    async def has_file_changed(self, path: str) -> bool:
        """
        Check whether a file's content differs from the cached copy.

        Reads bypassing the cache and stores the new content. A file
        that was never cached counts as changed; so does a cached file
        that has since disappeared.
        """
        path = normalize_path(path)
        previous = self._files.get(path)

        try:
            current = await self._load(path)
        except FileNotFoundError:
            self._files.pop(path, None)
            return previous is not None

        return previous is None or previous.digest != current.digest

    def clear_file_cache(self, path: str) -> None:
        """Forget a single file."""
        path = normalize_path(path)
        self._files.pop(path, None)
        self._drop_listings_above(path)

    def clear_dir_cache(self, path: str) -> None:
        """Forget a directory and everything cached beneath it."""
        path = normalize_path(path)
        prefix = path.rstrip("/") + "/"

        for file_path in [p for p in self._files if p.startswith(prefix)]:
            del self._files[file_path]

        for key in [
            k for k in self._dirs if k[0] == path or k[0].startswith(prefix)
        ]:
            del self._dirs[key]

        self._drop_listings_above(path)

    async def readdir(self, path: str, recursive: bool = True) -> list[str]:
        """
        List the files under a directory.

        Args:
            path: Absolute directory path
            recursive: Include files in all subdirectories

        Returns:
            Sorted absolute, normalized file paths
        """
        path = normalize_path(path)
        key = (path, recursive)
        listing = self._dirs.get(key)
        if listing is None:
            listing = await asyncio.to_thread(_list_files, path, recursive)
            self._dirs[key] = listing
        return list(listing)

    def get_cache_stats(self) -> dict[str, Any]:
        """Get statistics about the cache."""
        return {
            "cached_files": len(self._files),
            "cached_listings": len(self._dirs),
            "cached_bytes": sum(len(f.content) for f in self._files.values()),
        }

    def _drop_listings_above(self, path: str) -> None:
        """Forget cached listings of every ancestor of path."""
        for key in [
            k for k in self._dirs if path.startswith(k[0].rstrip("/") + "/")
        ]:
            del self._dirs[key]

    async def _load(self, path: str) -> CachedFile:
        data = await asyncio.to_thread(_read_bytes, path)
        entry = CachedFile(
            content=data.decode(self._encoding, errors="replace"),
            digest=hashlib.sha256(data).hexdigest(),
        )
        self._files[path] = entry
        self.log.debug("file_cached", path=path, size=len(data))
        return entry
