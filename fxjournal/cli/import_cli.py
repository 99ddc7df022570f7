"""Import CLI commands for MT5 trade-history CSV reports."""

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from fxjournal.lib.errors import FxJournalError, ImportLogNotFoundError
from fxjournal.services.import_service import ImportService
from fxjournal.services.vip_config import ImportScope

console = Console()

ALLOWED_SUFFIXES = (".csv", ".txt")

STATUS_COLORS = {"success": "green", "partial": "yellow", "failed": "red"}


def validate_file_path(file_path: Path) -> None:
    """Reject paths that are not plain report files.

    Raises:
        click.BadParameter: Path is a symlink, not a regular file, or not a CSV export
    """
    if not file_path.exists():
        raise click.BadParameter(f"File not found: {file_path}")

    if file_path.is_symlink():
        raise click.BadParameter(f"Symlinks are not allowed for security reasons: {file_path}")

    if not file_path.resolve().is_file():
        raise click.BadParameter(f"Path must be a regular file: {file_path}")

    if file_path.suffix.lower() not in ALLOWED_SUFFIXES:
        raise click.BadParameter(f"Only CSV files are allowed, got: {file_path.suffix}")


@click.group(name="import")
def import_group() -> None:
    """Import MT5 trade history and review past imports."""
    pass


@import_group.command(name="csv")
@click.option(
    "--file",
    "-f",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to MT5 report CSV",
)
@click.option(
    "--imported-by",
    default="cli",
    show_default=True,
    help="Identity recorded in the audit log",
)
@click.option("--profile", "profile_id", help="Import into this profile instead of the VIP profile")
@click.option("--user", "user_id", help="Owning user (required with --profile)")
def import_csv(file: Path, imported_by: str, profile_id: str | None, user_id: str | None) -> None:
    """Import trades from an MT5 trade-history report.

    Examples:
        fxjournal import csv -f ReportHistory.csv
        fxjournal import csv -f statement.csv --profile demo --user alice
    """
    validate_file_path(file)

    if bool(profile_id) != bool(user_id):
        raise click.UsageError("--profile and --user must be given together")
    scope = ImportScope(profile_id=profile_id, user_id=user_id) if profile_id and user_id else None

    service = ImportService()
    scope = scope or service.vip_config.resolve()

    console.print(f"\n[bold]Importing {file.name}[/bold] (profile: {scope.profile_id})")

    try:
        result = service.import_file(file, imported_by=imported_by, scope=scope)
    except FxJournalError as e:
        console.print(f"[red]✗ Import failed: {e.message}[/red]")
        raise click.Abort()

    table = Table(title="Import Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="green")

    table.add_row("Valid Trades", str(len(result.trades)))
    table.add_row("New", str(result.new_trades))
    table.add_row("Duplicates Skipped", str(result.skipped_trades))
    table.add_row("Updated", str(result.updated_trades))
    table.add_row("Issues", str(len(result.issues)), style="red" if result.issues else None)
    table.add_row("Unreadable Lines", str(len(result.skipped_lines)), style="dim")

    console.print(table)

    color = STATUS_COLORS.get(result.status.value, "white")
    console.print(f"\nStatus: [{color}]{result.status.value}[/{color}]")

    if result.aborted:
        console.print("[red]✗ Import stopped early after repeated save failures[/red]")

    if result.issues:
        for message in result.error_messages[:10]:
            console.print(f"  [yellow]•[/yellow] {message}")
        if len(result.issues) > 10:
            console.print(f"  [dim]... and {len(result.issues) - 10} more[/dim]")
        if result.audit_log_id:
            console.print(
                f"\n[dim]Review all with:[/dim] fxjournal import errors {result.audit_log_id}"
            )

    console.print()


@import_group.command(name="history")
@click.option(
    "--limit",
    "-n",
    default=10,
    type=int,
    help="Number of recent imports to show",
)
def import_history(limit: int) -> None:
    """Show recent import history.

    Example:
        fxjournal import history
        fxjournal import history -n 20
    """
    service = ImportService()
    logs = service.get_import_history(limit=limit)

    if not logs:
        console.print("\n[yellow]No import history found[/yellow]\n")
        return

    table = Table(title=f"Import History (last {limit})")
    table.add_column("Log ID", style="dim")
    table.add_column("File", style="cyan")
    table.add_column("Profile", style="magenta")
    table.add_column("Status")
    table.add_column("Trades", justify="right")
    table.add_column("New", justify="right", style="green")
    table.add_column("Skipped", justify="right")
    table.add_column("Errors", justify="right", style="red")
    table.add_column("By", style="dim")
    table.add_column("Date", style="dim")

    for log in logs:
        color = STATUS_COLORS.get(log.status, "white")
        table.add_row(
            str(log.log_id),
            log.filename or "-",
            log.profile_id,
            f"[{color}]{log.status}[/{color}]",
            str(log.trades_count),
            str(log.new_trades),
            str(log.skipped_trades),
            str(log.error_count),
            log.imported_by,
            log.imported_at.strftime("%Y-%m-%d %H:%M") if log.imported_at else "N/A",
        )

    console.print()
    console.print(table)
    console.print()


@import_group.command(name="errors")
@click.argument("log_id", type=int)
def import_errors(log_id: int) -> None:
    """Show the issues recorded for one import.

    LOG_ID: Import log ID (from import history)
    """
    service = ImportService()

    try:
        issues = service.get_import_issues(log_id)
    except ImportLogNotFoundError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        raise click.Abort()

    if not issues:
        console.print(f"\n[green]✓ No issues in import {log_id}[/green]\n")
        return

    table = Table(title=f"Issues in Import {log_id}")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Ticket", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Message")

    for issue in issues:
        table.add_row(
            str(issue.line_number) if issue.line_number is not None else "-",
            issue.ticket or "-",
            issue.type.value,
            issue.message,
        )

    console.print()
    console.print(table)
    console.print()
