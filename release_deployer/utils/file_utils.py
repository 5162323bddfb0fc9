# release_deployer/utils/file_utils.py
"""File operation utilities"""

import fnmatch
import shutil
from pathlib import Path, PurePath
from typing import List, Optional, Sequence, Union


def format_size(size: int) -> str:
    """
    Format file size in human-readable format

    Args:
        size: Size in bytes

    Returns:
        Formatted size string
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} PB"


def is_excluded(relative_path: Union[str, PurePath],
                patterns: Optional[Sequence[str]]) -> bool:
    """
    Check a relative path against exclude patterns

    A pattern without a slash matches any single path component, so
    ``node_modules`` excludes the directory at every depth and ``*.log``
    excludes log files anywhere. Patterns containing a slash match the whole
    relative path.

    Args:
        relative_path: Path relative to the tree root
        patterns: Glob patterns

    Returns:
        True if the path is excluded
    """
    if not patterns:
        return False

    path = PurePath(relative_path)
    posix = path.as_posix()

    for pattern in patterns:
        pattern = pattern.rstrip('/')
        if '/' in pattern:
            if fnmatch.fnmatch(posix, pattern.lstrip('/')):
                return True
        elif any(fnmatch.fnmatch(part, pattern) for part in path.parts):
            return True

    return False


def is_directory_empty(directory: Path) -> bool:
    """
    Check whether a directory is missing or has no entries

    Args:
        directory: Directory path

    Returns:
        True if the directory does not exist or is empty
    """
    if not directory.is_dir():
        return True
    return next(directory.iterdir(), None) is None


def remove_path(path: Path) -> None:
    """
    Remove a file, symlink or directory tree

    Args:
        path: Path to remove
    """
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def clear_directory(directory: Path,
                    preserve: Optional[Sequence[str]] = None) -> List[Path]:
    """
    Remove every entry of a directory, including hidden ones

    The directory itself is kept. Top-level entries matching ``preserve``
    are left in place.

    Args:
        directory: Directory to clear
        preserve: Exclude patterns to keep

    Returns:
        List of removed paths
    """
    removed = []

    if not directory.is_dir():
        return removed

    for entry in sorted(directory.iterdir()):
        if is_excluded(entry.name, preserve):
            continue
        remove_path(entry)
        removed.append(entry)

    return removed

