"""
BuildWatch File Cache Package.

Cached file reads and content-based change detection.
Requires Python 3.11+.
"""

from fscache.file_cache import CachedFile, FileCache

__all__ = [
    "CachedFile",
    "FileCache",
]
