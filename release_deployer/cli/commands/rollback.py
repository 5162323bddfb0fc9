"""Rollback command implementation"""

import sys

import click
from rich.prompt import Confirm

from ..utils.output import console, format_rollback_result, print_error
from ...api import Deployer
from ...api.exceptions import ConfigError


@click.command()
@click.option('--backup', 'backup_name', help='Backup file name to restore (default: newest)')
@click.option('-y', '--yes', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
def rollback(ctx, backup_name, yes):
    """Restore a previous release from a backup

    Stops the application, replaces the live directory with the backup's
    contents (keeping node_modules, .env and log files), then restarts it.

    Examples:

        # Restore the newest backup
        release-deployer rollback

        # Restore a specific backup without prompting
        release-deployer rollback --backup app_backup_20250101_120000_000000.tar.gz -y
    """
    try:
        config = ctx.obj.load_config()
    except ConfigError as e:
        print_error("Invalid configuration", e)
        sys.exit(1)

    deployer = Deployer(config)

    if not yes:
        target = backup_name or "the newest backup"
        console.print(f"Restore [bold]{target}[/bold] into [cyan]{config.live_path}[/cyan]")
        if not Confirm.ask("\n[cyan]Proceed with rollback?[/cyan]"):
            console.print("[yellow]Rollback cancelled[/yellow]")
            return

    result = deployer.rollback(backup_name)
    format_rollback_result(result)

    if not result.is_success:
        sys.exit(result.exit_code)
