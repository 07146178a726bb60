"""
BuildWatch Change Classifier.

Pure predicates deciding whether a path matters to the next rebuild.
Requires Python 3.11+.
"""

import fnmatch
import posixpath
from collections.abc import Callable, Iterable

from watcher.paths import normalize_path

# Aggregate declarations emitted by the compiler itself
GENERATED_DECLARATIONS_FILE = "components.d.ts"

DECLARATION_SUFFIX = ".d.ts"

# Scripts, markup-script variants, stylesheets and markup.
# Images, fonts and other binary assets are deliberately absent.
SOURCE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".ts",
        ".tsx",
        ".js",
        ".jsx",
        ".mjs",
        ".cjs",
        ".css",
        ".scss",
        ".sass",
        ".less",
        ".styl",
        ".pcss",
        ".html",
        ".htm",
    }
)

CopyTaskMatcher = Callable[[str], bool]

_GLOB_CHARS = frozenset("*?[")


def is_config_file(path: str, config_path: str | None) -> bool:
    """Check if path is the project config file."""
    return config_path is not None and path == config_path


def is_copy_task_file(path: str, matcher: CopyTaskMatcher | None) -> bool:
    """Check if path is copied verbatim by a copy task."""
    return matcher is not None and matcher(path)


def is_declaration_file(path: str) -> bool:
    """Check if path is a type declaration file."""
    return path.lower().endswith(DECLARATION_SUFFIX)


def is_source_file(path: str) -> bool:
    """Check if path is a script, style or markup file."""
    if is_declaration_file(path):
        return False
    return posixpath.splitext(path)[1].lower() in SOURCE_EXTENSIONS


def is_generated_declarations_file(path: str) -> bool:
    """Check if path is the compiler's own declarations output."""
    # Extended-length Windows paths keep their backslashes after normalizing
    return posixpath.basename(path.replace("\\", "/")) == GENERATED_DECLARATIONS_FILE


def is_relevant_file(path: str) -> bool:
    """
    Check if a change to path should trigger a rebuild.

    Source files always count; declaration files count unless they are
    the generated aggregate, which would make every build retrigger itself.
    """
    return is_source_file(path) or (
        is_declaration_file(path) and not is_generated_declarations_file(path)
    )


def make_copy_task_matcher(
    root_dir: str, patterns: Iterable[str]
) -> CopyTaskMatcher:
    """
    Build a copy task predicate from glob patterns.

    Relative patterns are resolved against root_dir. A pattern without
    glob characters also matches everything beneath it, so naming a
    directory copies its whole tree.

    Args:
        root_dir: Project root directory
        patterns: Glob patterns, relative or absolute

    Returns:
        Predicate taking a normalized path
    """
    root = normalize_path(root_dir)
    resolved: list[str] = []
    for pattern in patterns:
        if not posixpath.isabs(pattern.replace("\\", "/")):
            pattern = posixpath.join(root, pattern)
        resolved.append(normalize_path(pattern))

    def matcher(path: str) -> bool:
        for pattern in resolved:
            if fnmatch.fnmatchcase(path, pattern):
                return True
            if not _GLOB_CHARS & set(pattern) and path.startswith(pattern + "/"):
                return True
        return False

    return matcher
