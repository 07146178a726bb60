"""
BuildWatch Path Normalization.

All watcher bookkeeping compares paths in one OS-independent form:
forward slashes, no redundant separators or dot segments.
Requires Python 3.11+.
"""

import os
import posixpath

from watcher.errors import ClassificationError

# Windows extended-length paths must not be rewritten
_EXTENDED_PREFIX = "\\\\?\\"


def normalize_path(path: str | os.PathLike[str]) -> str:
    """
    Normalize a path for comparison and set membership.

    Args:
        path: Absolute file or directory path, in native or posix form

    Returns:
        Normalized path string

    Raises:
        ClassificationError: If the value is not a usable path
    """
    try:
        raw = os.fspath(path)
    except TypeError as e:
        raise ClassificationError(path, str(e)) from e

    if not isinstance(raw, str):
        raise ClassificationError(path, "bytes paths are not supported")
    if not raw:
        raise ClassificationError(path, "empty path")

    if raw.startswith(_EXTENDED_PREFIX):
        return raw

    return posixpath.normpath(raw.replace("\\", "/"))


def relative_path(path: str, root_dir: str | None) -> str:
    """Path relative to the project root, for log output only."""
    if not root_dir:
        return path
    try:
        return posixpath.relpath(path, root_dir)
    except ValueError:
        return path
