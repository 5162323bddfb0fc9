# release_deployer/cli/commands/doctor.py
"""Host capability diagnostic command"""

import os
import sys
import tempfile
from pathlib import Path
from typing import Optional

import click
from rich import box
from rich.table import Table

from ..utils.output import console
from ...api.exceptions import ConfigError
from ...core.transport import default_transports
from ...models.config import DeployerConfig
from ...utils.process_utils import command_exists


class DiagnosticCheck:
    """Base class for diagnostic checks"""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.passed = False
        self.message = ""
        self.fixes = []

    def run(self, ctx) -> 'DiagnosticCheck':
        """Run the diagnostic check"""
        raise NotImplementedError

    def fix(self, ctx) -> bool:
        """Attempt to fix the issue"""
        return False

    @staticmethod
    def config(ctx) -> Optional[DeployerConfig]:
        try:
            return ctx.obj.load_config()
        except ConfigError:
            return None


class ConfigurationCheck(DiagnosticCheck):
    """Check that configuration loads"""

    def __init__(self):
        super().__init__(
            "Configuration",
            "Load and validate the configuration file"
        )

    def run(self, ctx):
        try:
            config = ctx.obj.load_config()
        except ConfigError as e:
            self.passed = False
            self.message = str(e)
            self.fixes = ["Run 'release-deployer config init --live-dir <path>'"]
            return self

        self.passed = True
        self.message = f"{config.app_name} -> {config.live_path}"
        return self


class DownloadBackendCheck(DiagnosticCheck):
    """Report which download backend will be used"""

    def __init__(self):
        super().__init__(
            "Download Backend",
            "Probe curl, wget and requests"
        )

    def run(self, ctx):
        available = [t.name for t in default_transports() if t.is_available()]
        self.passed = bool(available)
        self.message = f"Using {available[0]} (available: {', '.join(available)})" if available \
            else "No download backend available"
        return self


class SupervisorCheck(DiagnosticCheck):
    """Report which process supervisors are installed"""

    def __init__(self):
        super().__init__(
            "Process Supervisor",
            "Probe pm2, systemctl and docker-compose"
        )

    def run(self, ctx):
        tools = {
            "pm2": command_exists("pm2"),
            "systemd": command_exists("systemctl"),
            "compose": command_exists("docker-compose") or command_exists("docker"),
        }
        found = [name for name, present in tools.items() if present]

        # Deployments still succeed without one; the app must then be started manually
        self.passed = True
        if found:
            self.message = f"Available: {', '.join(found)}"
        else:
            self.message = "None found, application must be started manually"
        return self


class PackageManagerCheck(DiagnosticCheck):
    """Check npm for dependency installation"""

    def __init__(self):
        super().__init__(
            "Package Manager",
            "Check npm is on PATH"
        )

    def run(self, ctx):
        self.passed = command_exists("npm")
        self.message = "npm found" if self.passed else "npm not found, releases with package.json will fail"
        return self


class DirectoriesCheck(DiagnosticCheck):
    """Check the live, backup and scratch directories are writable"""

    def __init__(self):
        super().__init__(
            "Directories",
            "Verify write access to live, backup and scratch directories"
        )
        self._missing = []

    @staticmethod
    def _writable(path: Path) -> bool:
        probe = path
        while not probe.exists():
            if probe.parent == probe:
                return False
            probe = probe.parent
        if not probe.is_dir() or not os.access(probe, os.W_OK):
            return False
        try:
            with tempfile.TemporaryFile(dir=str(probe)):
                pass
        except OSError:
            return False
        return True

    def run(self, ctx):
        config = self.config(ctx)
        if config is None:
            self.passed = False
            self.message = "Skipped, configuration not loaded"
            return self

        paths = {
            "live": config.live_path,
            "backups": config.backup_path,
            "scratch": config.scratch_path,
        }

        issues = [f"{label} ({path})" for label, path in paths.items() if not self._writable(path)]
        self._missing = [path for path in paths.values() if not path.exists()]

        if issues:
            self.passed = False
            self.message = f"Not writable: {', '.join(issues)}"
        else:
            self.passed = True
            self.message = "All directories writable"
            if self._missing:
                self.fixes = [f"Create {path}" for path in self._missing]
        return self

    def fix(self, ctx):
        for path in self._missing:
            path.mkdir(parents=True, exist_ok=True)
        return bool(self._missing)


@click.command()
@click.option('--fix', is_flag=True, help='Create missing directories')
@click.option('--check', multiple=True,
              type=click.Choice(['all', 'config', 'download', 'supervisor', 'npm', 'directories']),
              default=['all'],
              help='Specific checks to run')
@click.pass_context
def doctor(ctx, fix, check):
    """Run host diagnostics

    Reports which download backend and process supervisors this host
    offers and whether the configured directories are usable.

    Examples:

        # Run all checks
        release-deployer doctor

        # Run specific checks
        release-deployer doctor --check download --check supervisor
    """
    console.print("[bold]Release Deployer Diagnostics[/bold]\n")

    all_checks = {
        'config': ConfigurationCheck(),
        'download': DownloadBackendCheck(),
        'supervisor': SupervisorCheck(),
        'npm': PackageManagerCheck(),
        'directories': DirectoriesCheck(),
    }

    if 'all' in check:
        checks_to_run = list(all_checks.values())
    else:
        checks_to_run = [all_checks[c] for c in check if c in all_checks]

    failed_checks = []
    for diagnostic_check in checks_to_run:
        diagnostic_check.run(ctx)
        if not diagnostic_check.passed:
            failed_checks.append(diagnostic_check)

    table = Table(title="Diagnostic Results", box=box.ROUNDED)
    table.add_column("Check", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Details")

    for diagnostic_check in checks_to_run:
        status = "[green]✓ PASS[/green]" if diagnostic_check.passed else "[red]✗ FAIL[/red]"
        table.add_row(diagnostic_check.name, status, diagnostic_check.message)

    console.print(table)

    if fix:
        for diagnostic_check in checks_to_run:
            if diagnostic_check.fixes and diagnostic_check.fix(ctx):
                console.print(f"[green]✓[/green] Fixed: {diagnostic_check.name}")

    if failed_checks:
        console.print(f"\n[red]{len(failed_checks)} check(s) failed[/red]")
        sys.exit(1)

    console.print("\n[green]All checks passed![/green]")
