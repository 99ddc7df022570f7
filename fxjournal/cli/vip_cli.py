"""VIP showcase CLI commands: statistics and scope configuration."""

import click
from rich.console import Console
from rich.table import Table

from fxjournal.lib.errors import DatabaseError, FxJournalError
from fxjournal.services.import_service import ImportService
from fxjournal.services.vip_config import VipConfigService

console = Console()


@click.group()
def vip() -> None:
    """VIP showcase statistics and configuration."""
    pass


@vip.command(name="stats")
@click.option("--profile", "profile_id", help="Profile to summarize (default: VIP profile)")
def vip_stats(profile_id: str | None) -> None:
    """Show performance statistics of the VIP profile."""
    service = ImportService()
    stats = service.get_vip_stats(profile_id)

    if stats.total_trades == 0:
        console.print("\n[yellow]No closed VIP trades yet[/yellow]\n")
        return

    profit_color = "green" if stats.total_profit >= 0 else "red"

    table = Table(title="VIP Performance")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Total Trades", str(stats.total_trades))
    table.add_row("Winning / Losing", f"{stats.winning_trades} / {stats.losing_trades}")
    table.add_row("Win Rate", f"{stats.win_rate:.1f}%")
    table.add_row("Total Profit", f"[{profit_color}]{stats.total_profit:,.2f}[/{profit_color}]")
    table.add_row("Average Win", f"{stats.average_win:,.2f}")
    table.add_row("Average Loss", f"{stats.average_loss:,.2f}")
    table.add_row("Best Trade", f"{stats.best_trade:,.2f}")
    table.add_row("Worst Trade", f"{stats.worst_trade:,.2f}")
    table.add_row("Starting Balance (est.)", f"{stats.starting_balance:,.2f}")
    table.add_row("Current Balance", f"{stats.current_balance:,.2f}")
    table.add_row(
        "Last Import",
        stats.last_updated.strftime("%Y-%m-%d %H:%M") if stats.last_updated else "never",
        style="dim",
    )
    table.add_row("Sync Method", stats.sync_method, style="dim")

    console.print()
    console.print(table)
    console.print()


@vip.group(name="config")
def vip_config() -> None:
    """Manage which profile receives VIP trades."""
    pass


@vip_config.command(name="show")
def config_show() -> None:
    """Show the effective VIP profile and user."""
    service = VipConfigService()
    scope = service.resolve()

    console.print(f"\nProfile: [bold cyan]{scope.profile_id}[/bold cyan]")
    console.print(f"User:    [bold cyan]{scope.user_id}[/bold cyan]")

    try:
        document = service.get_document()
    except DatabaseError as e:
        console.print(f"[yellow]Shared config unavailable: {e.message}[/yellow]")
        document = {}

    if document:
        console.print(
            f"[dim]Shared config: profileId={document.get('profileId')}, "
            f"userId={document.get('userId')}, updatedAt={document.get('updatedAt')}[/dim]\n"
        )
    else:
        console.print("[dim]No shared config saved, using defaults[/dim]\n")


@vip_config.command(name="set")
@click.argument("profile_id")
@click.option("--user", "user_id", help="Owning user (default: vip-trader)")
def config_set(profile_id: str, user_id: str | None) -> None:
    """Point the VIP showcase at PROFILE_ID."""
    service = VipConfigService()

    try:
        scope = service.set_config(profile_id, user_id)
    except FxJournalError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        raise click.Abort()

    console.print(
        f"[green]✓ VIP profile set to {scope.profile_id} (user: {scope.user_id})[/green]"
    )


@vip_config.command(name="clear")
def config_clear() -> None:
    """Remove the local override; the shared config applies again."""
    service = VipConfigService()
    service.clear_local_override()
    scope = service.resolve()
    console.print(f"[green]✓ Local override cleared, VIP profile is {scope.profile_id}[/green]")
