"""Deployment history command"""

import json
import sys

import click

from ..utils.output import console, format_history, print_error
from ...api import Deployer
from ...api.exceptions import ConfigError


@click.command()
@click.option('-n', '--limit', type=click.IntRange(min=1), default=20, show_default=True,
              help='Number of records to show')
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
@click.pass_context
def history(ctx, limit, as_json):
    """Show recent deployments, newest first"""
    try:
        config = ctx.obj.load_config()
    except ConfigError as e:
        print_error("Invalid configuration", e)
        sys.exit(1)

    records = Deployer(config).history(limit)

    if as_json:
        console.print_json(json.dumps([record.to_dict() for record in records]))
    else:
        format_history(records)
