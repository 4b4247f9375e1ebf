"""`canvasdoc pack` command.

Loads a source tree (optionally checking manifest hashes) and writes a packed
`.msapp`, restoring stripped defaults, editor state and entry order.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from canvasdoc.cli.reporting import report, settings_from
from canvasdoc.document import CanvasDocument


def register(app: typer.Typer) -> None:
    @app.command("pack")
    def pack(
        ctx: typer.Context,
        src: str = typer.Argument(..., help="Source-tree directory."),
        msapp: str = typer.Argument(..., help="Output .msapp file path."),
        validate_hashes: Optional[bool] = typer.Option(
            None,
            "--validate-hashes/--no-validate-hashes",
            help="Recompute sha256 and compare to manifest (default CANVASDOC_VALIDATE_HASHES).",
        ),
    ) -> None:
        """Pack a source tree into an `.msapp`."""
        settings = settings_from(ctx)
        check = settings.validate_hashes if validate_hashes is None else validate_hashes
        doc, errors = CanvasDocument.load_from_sources(src, validate_hashes=check)
        report(errors)

        errors = doc.save_to_msapp(msapp)
        report(errors)
        typer.echo(str(Path(msapp)))
