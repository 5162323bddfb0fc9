# release_deployer/cli/main.py
"""Main CLI entry point for release-deployer"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.logging import RichHandler

from ..constants import APP_NAME, ENV_LOG_FILE, FILE_LOG_FORMAT, LOG_DATE_FORMAT, LOG_FORMAT
from ..models.config import DeployerConfig
from ..services.config_service import ConfigService
from .utils.output import console, print_warning

# Import all commands
from .commands import (
    deploy,
    rollback,
    backups,
    history,
    doctor,
    config,
)


def setup_logging(verbose: bool = False, debug: bool = False, quiet: bool = False,
                  log_file: Optional[str] = None) -> None:
    """Setup logging configuration

    Args:
        verbose: Show logger names and source locations
        debug: Enable debug output (DEBUG level)
        quiet: Only warnings and errors
        log_file: Also write the log stream to this file
    """
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=True,
                show_path=verbose or debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ],
        force=True
    )

    if log_file:
        add_file_handler(log_file)

    # Adjust third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def add_file_handler(log_file: str) -> bool:
    """Duplicate the log stream into a file

    Failure to open the file leaves console logging in place.

    Args:
        log_file: Log file path

    Returns:
        True if the handler was attached
    """
    root = logging.getLogger()
    path = Path(log_file).expanduser()

    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == path.absolute():
            return True

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding='utf-8')
    except OSError as e:
        print_warning(f"Cannot open log file {path}, logging to console only: {e}")
        return False

    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(handler)
    return True


class Context:
    """CLI context object with lazy configuration loading"""

    def __init__(self, config_path: Optional[str] = None, log_file: Optional[str] = None):
        """Initialize CLI context

        Args:
            config_path: Explicit configuration file
            log_file: Log file given on the command line
        """
        self.config_path = Path(config_path) if config_path else None
        self.log_file = log_file
        self.verbose: bool = False
        self.debug: bool = False
        self._config: Optional[DeployerConfig] = None

    @property
    def config_service(self) -> ConfigService:
        return ConfigService(self.config_path)

    def load_config(self, require_live_dir: bool = True) -> DeployerConfig:
        """Load configuration once and attach its log file

        Raises:
            ConfigError: If the configuration is invalid
        """
        if self._config is None:
            self._config = self.config_service.load_config(require_live_dir=require_live_dir)
            if self._config.log_file and not self.log_file:
                add_file_handler(self._config.log_file)
        return self._config


@click.group(name=APP_NAME)
@click.option('-v', '--verbose', is_flag=True, help='Show logger names in output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Only show warnings and errors')
@click.option('-c', '--config', 'config_path', type=click.Path(dir_okay=False),
              help='Configuration file (default: ./.release-deployer.yaml)')
@click.option('--log-file', type=click.Path(dir_okay=False),
              help='Also write the log stream to this file')
@click.version_option(package_name="release-deployer", prog_name=APP_NAME)
@click.pass_context
def cli(ctx, verbose, debug, quiet, config_path, log_file):
    """Release Deployer - deploy release tarballs onto a single host

    Downloads a release artifact, validates it, backs up the running
    application, installs the new files, restarts the application under
    pm2, systemd or docker-compose and checks that it answers again.
    """
    log_file = log_file or os.environ.get(ENV_LOG_FILE)

    # Setup logging
    setup_logging(verbose=verbose, debug=debug, quiet=quiet, log_file=log_file)

    ctx.obj = Context(config_path=config_path, log_file=log_file)
    ctx.obj.verbose = verbose
    ctx.obj.debug = debug


# Register commands
cli.add_command(deploy.deploy)
cli.add_command(deploy.deploy_event)
cli.add_command(rollback.rollback)
cli.add_command(backups.backups)
cli.add_command(history.history)
cli.add_command(doctor.doctor)
cli.add_command(config.config)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts and termination signals
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME)

    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]Operation cancelled[/yellow]")
        sys.exit(130)

    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
