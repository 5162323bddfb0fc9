"""Backup listing command"""

import json
import sys

import click

from ..utils.output import console, format_backup_list, print_error
from ...api import Deployer
from ...api.exceptions import ConfigError


@click.command()
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
@click.pass_context
def backups(ctx, as_json):
    """List retained backups, newest first"""
    try:
        config = ctx.obj.load_config()
    except ConfigError as e:
        print_error("Invalid configuration", e)
        sys.exit(1)

    archives = Deployer(config).list_backups()

    if as_json:
        console.print_json(json.dumps([backup.to_dict() for backup in archives]))
    else:
        format_backup_list(archives)
