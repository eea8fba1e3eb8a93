"""
Helpers for picking a storage directory inside the calling project.
"""

import os

# Files that mark the root of a Python project
PROJECT_MARKERS = ("pyproject.toml", "setup.cfg", "setup.py")

# Maximum directory levels to walk up when looking for a marker
MAX_ASCEND_LEVELS = 8


def project_root(
    start: str | os.PathLike | None = None,
    markers: tuple[str, ...] = PROJECT_MARKERS,
) -> str:
    """
    Detect the project root directory.

    Walks up from start until a directory containing one of the marker
    files is found, giving up after MAX_ASCEND_LEVELS levels.

    Args:
        start: Directory to start from (default: current working directory).
        markers: File names identifying a project root.

    Returns:
        Absolute path of the project root, or of start when none is found.
    """
    origin = os.path.abspath(os.fspath(start) if start is not None else os.getcwd())
    directory = origin
    previous = None
    levels = 0

    while directory != previous and levels < MAX_ASCEND_LEVELS:
        if any(os.path.isfile(os.path.join(directory, marker)) for marker in markers):
            return directory

        previous = directory
        directory = os.path.dirname(directory)
        levels += 1

    return origin


def storage_dir(relative: str = "storage", start: str | os.PathLike | None = None) -> str:
    """
    Return a storage directory under the detected project root.

    Example:
        storage_dir()              -> <project root>/storage
        storage_dir("var/auxdata") -> <project root>/var/auxdata

    The directory is not created.
    """
    parts = relative.replace("\\", "/").split("/")
    return os.path.join(project_root(start), *[part for part in parts if part])
