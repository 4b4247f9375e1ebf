"""canvasdoc CLI entrypoint.

Typer application; subcommands live in `canvasdoc.cli.commands` and are
registered below.
"""

from __future__ import annotations

import typer

from canvasdoc.config import Settings
from canvasdoc.logging_utils import configure_logging

app = typer.Typer(
    name="canvasdoc",
    add_completion=False,
    no_args_is_help=True,
    help="Pack and unpack canvas app documents (.msapp <-> source tree).",
)


@app.callback()
def _callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level (overrides CANVASDOC_LOG_LEVEL)."),
) -> None:
    """canvasdoc CLI."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    configure_logging(level="DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


@app.command("version")
def version() -> None:
    """Print the installed canvasdoc version."""
    from canvasdoc import __version__

    typer.echo(__version__)


def _register_commands() -> None:
    """Register CLI subcommands.

    Importing these modules must remain lightweight so `canvasdoc --help` is fast.
    """
    from canvasdoc.cli.commands import inventory as inventory_cmd
    from canvasdoc.cli.commands import make as make_cmd
    from canvasdoc.cli.commands import pack as pack_cmd
    from canvasdoc.cli.commands import unpack as unpack_cmd
    from canvasdoc.cli.commands import update_datasource as update_datasource_cmd
    from canvasdoc.cli.commands import verify as verify_cmd

    unpack_cmd.register(app)
    pack_cmd.register(app)
    make_cmd.register(app)
    verify_cmd.register(app)
    update_datasource_cmd.register(app)
    inventory_cmd.register(app)


_register_commands()
