"""CLI utility functions"""

from .output import (
    console,
    format_deploy_result,
    format_rollback_result,
    format_backup_list,
    format_history,
    format_yaml,
    print_error,
    print_warning,
    print_info,
    print_success,
)

__all__ = [
    'console',

    # Result formatting
    'format_deploy_result',
    'format_rollback_result',
    'format_backup_list',
    'format_history',
    'format_yaml',

    # Messages
    'print_error',
    'print_warning',
    'print_info',
    'print_success',
]
