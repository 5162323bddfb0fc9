"""Configuration management commands"""

import sys

import click

from ..utils.output import console, format_yaml, print_error, print_success
from ...api.exceptions import ConfigError
from ...constants import APP_NAME_PATTERN, PROJECT_CONFIG_FILE
from ...models.config import DeployerConfig


@click.group()
def config():
    """Manage release-deployer configuration"""
    pass


@config.command()
@click.option('--show-secrets', is_flag=True, help='Do not mask the webhook secret')
@click.pass_context
def show(ctx, show_secrets):
    """Show the effective configuration

    Environment overrides are applied, so this is what a deployment would use.
    """
    try:
        loaded = ctx.obj.load_config(require_live_dir=False)
    except ConfigError as e:
        print_error("Invalid configuration", e)
        sys.exit(1)

    data = loaded.to_dict()
    if data.get("webhook_secret") and not show_secrets:
        data["webhook_secret"] = "********"

    console.print(f"[dim]Source: {ctx.obj.config_service.config_path}[/dim]")
    format_yaml(data, title="Configuration")


@config.command()
@click.option('--app-name', default="app", show_default=True, help='Application name')
@click.option('--live-dir', required=True, type=click.Path(file_okay=False),
              help='Directory the application runs from')
@click.option('--backup-dir', type=click.Path(file_okay=False),
              help='Backup directory (default: <live-dir>/../backups)')
@click.option('--force', is_flag=True, help='Overwrite an existing configuration file')
@click.pass_context
def init(ctx, app_name, live_dir, backup_dir, force):
    """Write a configuration file with default settings

    Examples:

        release-deployer config init --app-name chat --live-dir /srv/chat
    """
    if not APP_NAME_PATTERN.match(app_name):
        print_error(f"Invalid application name: {app_name}")
        sys.exit(1)

    new_config = DeployerConfig(app_name=app_name, live_dir=live_dir)
    if backup_dir:
        new_config.backup.directory = backup_dir

    try:
        path = ctx.obj.config_service.save_config(new_config, overwrite=force)
    except ConfigError as e:
        print_error(str(e))
        console.print(f"Use --force to overwrite {PROJECT_CONFIG_FILE}")
        sys.exit(1)

    print_success(f"Configuration written to {path}")
