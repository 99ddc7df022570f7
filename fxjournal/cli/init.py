"""`fxjournal init`: create or wipe the journal database."""

import click

from fxjournal.lib.db import DEFAULT_DB_PATH, db_exists, init_db, reset_db


@click.command()
@click.option("--reset", is_flag=True, help="Drop all trades, import logs and VIP config")
def init(reset: bool) -> None:
    """Create the journal database (or wipe it with --reset)."""
    if not reset:
        if db_exists():
            click.echo("Database already exists")
            click.echo("Use --reset to recreate (WARNING: this will delete all data)")
            return

        init_db()
        click.echo("Database initialized")
        click.echo(f"Default location: {DEFAULT_DB_PATH} (override with FXJOURNAL_DB_PATH)")
        return

    if not click.confirm("This will DELETE ALL DATA. Continue?"):
        click.echo("Aborted.")
        return

    reset_db()
    click.echo("Database reset successfully.")
