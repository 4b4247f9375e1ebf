"""`canvasdoc inventory` command.

Lists the entries of an `.msapp` (path, kind, size, canonical sha256) as a
table, or writes them as CSV with `--csv`.
"""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Optional

import typer

from canvasdoc.inventory import inventory_from_msapp


def register(app: typer.Typer) -> None:
    @app.command("inventory")
    def inventory(
        msapp: str = typer.Argument(..., help="Path to a packed .msapp file."),
        csv: Optional[str] = typer.Option(None, "--csv", help="Write the inventory to this CSV file instead."),
    ) -> None:
        """List the entries of an `.msapp`."""
        try:
            df = inventory_from_msapp(msapp)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            typer.echo(f"InternalError: {e}", err=True)
            raise typer.Exit(code=1) from e

        if csv is None:
            typer.echo(df.to_string(index=False))
            return

        out_path = Path(csv)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out_path, index=False, lineterminator="\n")
        typer.echo(str(out_path))
