"""`canvasdoc verify` command.

Checks that an `.msapp` survives unpack -> pack: every entry present on both
sides with the same canonical content. Exit codes:
- 0: no differences
- 1: load/save errors, or any differing entry (listed on stdout)
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Optional

import typer

from canvasdoc.cli.reporting import report, settings_from
from canvasdoc.inventory import verify_roundtrip


def register(app: typer.Typer) -> None:
    @app.command("verify")
    def verify(
        ctx: typer.Context,
        msapp: str = typer.Argument(..., help="Path to a packed .msapp file."),
        work_dir: Optional[str] = typer.Option(
            None, "--work-dir", help="Keep the intermediate source tree here (default: temporary folder)."
        ),
    ) -> None:
        """Verify that an `.msapp` round trips through a source tree."""
        settings = settings_from(ctx)
        if work_dir is not None:
            diff, errors = verify_roundtrip(msapp, Path(work_dir), indent=settings.json_indent)
        else:
            with tempfile.TemporaryDirectory(prefix="canvasdoc-") as tmp:
                diff, errors = verify_roundtrip(msapp, Path(tmp) / "src", indent=settings.json_indent)
        report(errors)

        if len(diff) > 0:
            typer.echo(diff.to_string(index=False))
            raise typer.Exit(code=1)
        typer.echo("OK")
