# release_deployer/cli/utils/output.py
"""Output formatting utilities"""

from typing import Any, List, Optional

import yaml
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ...models import BackupArchive, DeploymentRecord, DeployResult, RollbackResult
from ...utils.file_utils import format_size

console = Console()


def _warning_lines(warnings: List[str]) -> List[str]:
    if not warnings:
        return []
    lines = ["", "[bold yellow]Warnings:[/bold yellow]"]
    lines.extend(f"  [yellow]• {warning}[/yellow]" for warning in warnings)
    return lines


def _health_text(health_confirmed: Optional[bool]) -> str:
    if health_confirmed is None:
        return "[dim]Skipped[/dim]"
    return "[green]Passed[/green]" if health_confirmed else "[yellow]Unconfirmed[/yellow]"


def format_deploy_result(result: DeployResult) -> None:
    """Format and display deploy operation result"""
    release_tag = result.request.release_tag if result.request else "-"

    if result.is_success:
        lines = [
            "[green]✓[/green] Deployment completed successfully!",
            "",
            f"[bold]Application:[/bold] {result.app_name}",
            f"[bold]Release:[/bold] {release_tag}",
        ]

        if result.artifact:
            lines.append(f"[bold]Artifact:[/bold] {format_size(result.artifact.size_bytes)}")
        lines.append(f"[bold]Backup:[/bold] {result.backup.name if result.backup else 'None'}")
        lines.append(f"[bold]Supervisor:[/bold] {result.supervisor or 'None (manual start required)'}")
        lines.append(f"[bold]Health:[/bold] {_health_text(result.health_confirmed)}")

        if result.duration is not None:
            lines.append(f"[bold]Duration:[/bold] {result.duration:.1f}s")

        lines.extend(_warning_lines(result.warnings))

        console.print(Panel("\n".join(lines), title="Deploy Result", border_style="green"))

    else:
        stage = result.failed_stage.value if result.failed_stage else "unknown"
        lines = [
            f"[red]✗ Deploy failed at {stage}:[/red] {result.error}",
            "",
            f"[bold]Application:[/bold] {result.app_name}",
            f"[bold]Release:[/bold] {release_tag}",
        ]

        if result.rolled_back:
            lines.append(f"[yellow]Previous release restored from {result.backup.name}[/yellow]")
        elif result.backup:
            lines.append(f"[bold]Backup retained:[/bold] {result.backup.path}")

        lines.extend(_warning_lines(result.warnings))

        console.print(Panel("\n".join(lines), title="Deploy Error", border_style="red"))


def format_rollback_result(result: RollbackResult) -> None:
    """Format and display rollback operation result"""
    if result.is_success:
        lines = [
            "[green]✓[/green] Rollback completed successfully!",
            "",
            f"[bold]Application:[/bold] {result.app_name}",
            f"[bold]Restored:[/bold] {result.backup.name if result.backup else '-'}",
            f"[bold]Supervisor:[/bold] {result.supervisor or 'None (manual start required)'}",
            f"[bold]Health:[/bold] {_health_text(result.health_confirmed)}",
        ]
        lines.extend(_warning_lines(result.warnings))
        console.print(Panel("\n".join(lines), title="Rollback Result", border_style="green"))
    else:
        console.print(Panel(
            f"[red]✗ Rollback failed:[/red] {result.error}",
            title="Rollback Error",
            border_style="red"
        ))


def format_backup_list(backups: List[BackupArchive]) -> None:
    """Display retained backups as a table"""
    if not backups:
        console.print("[yellow]No backups found[/yellow]")
        return

    table = Table(title="Backups", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Created")
    table.add_column("Size", justify="right")

    for index, backup in enumerate(backups, 1):
        table.add_row(
            str(index),
            backup.name,
            backup.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            format_size(backup.size)
        )

    console.print(table)


def format_history(records: List[DeploymentRecord]) -> None:
    """Display deployment history as a table"""
    if not records:
        console.print("[yellow]No deployments recorded[/yellow]")
        return

    table = Table(title="Deployment History", box=box.ROUNDED)
    table.add_column("Started", style="dim")
    table.add_column("Release", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Failed Stage")
    table.add_column("Health", justify="center")
    table.add_column("Duration", justify="right")

    for record in records:
        if record.status == "success":
            status = "[green]✓ success[/green]"
        else:
            status = "[red]✗ failed[/red]"
        if record.rolled_back:
            status += " [yellow](rolled back)[/yellow]"

        table.add_row(
            record.started_at.replace("T", " ")[:19],
            record.release_tag,
            status,
            record.failed_stage or "-",
            _health_text(record.health_confirmed),
            f"{record.duration:.1f}s" if record.duration is not None else "-"
        )

    console.print(table)


def format_yaml(data: Any, title: Optional[str] = None) -> None:
    """Display data as highlighted YAML"""
    text = yaml.dump(data, default_flow_style=False, sort_keys=False)
    syntax = Syntax(text, "yaml", theme="monokai", background_color="default")

    if title:
        console.print(Panel(syntax, title=title, border_style="blue"))
    else:
        console.print(syntax)


def print_error(message: str, error: Optional[Exception] = None) -> None:
    """Print error message"""
    if error:
        console.print(f"[red]Error:[/red] {message}: {str(error)}")
    else:
        console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print warning message"""
    console.print(f"[yellow]Warning:[/yellow] {message}")


def print_info(message: str) -> None:
    """Print info message"""
    console.print(f"[blue]Info:[/blue] {message}")


def print_success(message: str) -> None:
    """Print success message"""
    console.print(f"[green]Success:[/green] {message}")
