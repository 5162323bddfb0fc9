# release_deployer/utils/__init__.py
"""Utility functions for release-deployer"""

from .async_utils import run_async, run_cancellable, sync_to_async
from .file_utils import format_size, is_excluded, is_directory_empty, clear_directory
from .process_utils import CommandResult, command_exists, run_command

__all__ = [
    "run_async",
    "run_cancellable",
    "sync_to_async",
    "format_size",
    "is_excluded",
    "is_directory_empty",
    "clear_directory",
    "CommandResult",
    "command_exists",
    "run_command",
]
