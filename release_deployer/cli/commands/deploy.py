"""Deploy command implementation"""

import sys

import click

from ..utils.output import format_deploy_result, print_error, print_info
from ...api import Deployer
from ...api.exceptions import ConfigError, InvalidSignatureError
from ...constants import RELEASE_EVENT


@click.command()
@click.argument('artifact_url')
@click.argument('release_tag')
@click.pass_context
def deploy(ctx, artifact_url, release_tag):
    """Deploy a release artifact

    Downloads ARTIFACT_URL (a gzip tarball), installs it into the configured
    live directory and restarts the application. RELEASE_TAG names the
    release in logs, backups and history.

    Examples:

        # Deploy a prebuilt release asset
        release-deployer deploy https://example.com/app-v1.2.0.tar.gz v1.2.0

        # Use an explicit configuration file
        release-deployer -c /etc/release-deployer/app.yaml deploy URL v1.2.0
    """
    try:
        config = ctx.obj.load_config()
    except ConfigError as e:
        print_error("Invalid configuration", e)
        sys.exit(1)

    result = Deployer(config).deploy(artifact_url, release_tag)
    format_deploy_result(result)

    if not result.is_success:
        sys.exit(result.exit_code)


@click.command(name='deploy-event')
@click.argument('payload', type=click.File('rb'))
@click.option('--event', default=RELEASE_EVENT, show_default=True,
              help='Event name the notification was delivered as')
@click.option('--signature', envvar='RELEASE_DEPLOYER_EVENT_SIGNATURE',
              help='Signature header value (sha256=...)')
@click.pass_context
def deploy_event(ctx, payload, event, signature):
    """Deploy from a release notification payload

    Reads a release event body from PAYLOAD ('-' for stdin). Only published
    releases deploy; the first .tar.gz/.tgz asset is preferred, otherwise
    the source tarball is used. When webhook_secret is configured the
    signature must verify.

    Examples:

        # Replay a saved notification
        release-deployer deploy-event release.json --signature sha256=...

        # Pipe a body from a receiver
        cat body.json | release-deployer deploy-event - --event release
    """
    try:
        config = ctx.obj.load_config()
    except ConfigError as e:
        print_error("Invalid configuration", e)
        sys.exit(1)

    body = payload.read()

    try:
        result = Deployer(config).deploy_event(body, event=event, signature=signature)
    except InvalidSignatureError as e:
        print_error("Rejected release event", e)
        sys.exit(1)
    except ConfigError as e:
        print_error("Invalid release event", e)
        sys.exit(1)

    if result is None:
        print_info("Event does not trigger a deployment, nothing to do")
        return

    format_deploy_result(result)
    if not result.is_success:
        sys.exit(result.exit_code)
