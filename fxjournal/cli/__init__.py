"""`fxjournal` command line: MT5 report imports and the VIP showcase."""

import logging
import sys
import traceback

import click
from rich.console import Console

from fxjournal import __version__
from fxjournal.cli import import_cli, vip_cli
from fxjournal.cli import init as init_cmd
from fxjournal.lib.errors import FxJournalError, format_error_message, get_error_color
from fxjournal.lib.logging_config import setup_logging

console = Console()


@click.group()  # type: ignore[misc]
@click.option("--debug", is_flag=True, help="Log pipeline details and show tracebacks")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def main(ctx: click.Context, debug: bool) -> None:
    """FX Journal - Import MT5 trade history into the VIP showcase."""
    ctx.ensure_object(dict)
    ctx.obj["DEBUG"] = debug
    setup_logging(logging.DEBUG if debug else logging.WARNING)


def handle_exception(
    exc_type: type[BaseException], exc_value: BaseException, exc_traceback: object
) -> None:
    """Print uncaught errors as one coloured line and exit with status 1.

    Tracebacks are printed only with --debug.
    """
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)  # type: ignore[arg-type]
        return

    if isinstance(exc_value, Exception):
        color, message = get_error_color(exc_value), format_error_message(exc_value)
    else:
        color, message = "red", str(exc_value)
    console.print(f"\n[{color}]✗ Error: {message}[/{color}]\n")

    debug = "--debug" in sys.argv
    if not isinstance(exc_value, FxJournalError):
        console.print("[dim]Unexpected error occurred. Use --debug for full traceback.[/dim]")
    if debug:
        traceback.print_exception(exc_value)

    sys.exit(1)


sys.excepthook = handle_exception


@main.command()  # type: ignore[misc]
def version() -> None:
    """Show version information."""
    click.echo(f"fx-journal version {__version__}")


main.add_command(import_cli.import_group)
main.add_command(vip_cli.vip)
main.add_command(init_cmd.init)


if __name__ == "__main__":
    main()
