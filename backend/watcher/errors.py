"""
BuildWatch Watcher Errors.

Neither error is fatal: the listener logs them at its handler boundary.
Requires Python 3.11+.
"""


class WatcherError(Exception):
    """Base class for errors raised while processing a watch event."""


class ClassificationError(WatcherError):
    """A path could not be normalized or classified."""

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"cannot classify {path!r}: {reason}")
        self.path = path
        self.reason = reason


class CollaboratorIOError(WatcherError):
    """A filesystem cache call failed or was rejected."""

    def __init__(self, operation: str, path: str, cause: BaseException) -> None:
        super().__init__(f"{operation}({path}) failed: {cause}")
        self.operation = operation
        self.path = path
        self.cause = cause
