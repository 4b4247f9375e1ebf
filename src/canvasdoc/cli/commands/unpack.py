"""`canvasdoc unpack` command.

Loads a packed `.msapp` and writes it as a source tree:
- recognized shards are split per data source and per top-level control
- default-valued rules and editor-only keys move to `EditorState/`
- unrecognized archive entries are kept under `Other/`
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from canvasdoc.cli.reporting import report, settings_from
from canvasdoc.document import CanvasDocument


def register(app: typer.Typer) -> None:
    @app.command("unpack")
    def unpack(
        ctx: typer.Context,
        msapp: str = typer.Argument(..., help="Path to a packed .msapp file."),
        out: str = typer.Argument(..., help="Output source-tree directory."),
        indent: Optional[int] = typer.Option(None, "--indent", min=0, help="JSON indent (default CANVASDOC_JSON_INDENT or 2)."),
    ) -> None:
        """Unpack an `.msapp` into a source tree."""
        settings = settings_from(ctx)
        doc, errors = CanvasDocument.load_from_msapp(msapp)
        report(errors)

        errors = doc.save_to_sources(out, indent=settings.json_indent if indent is None else indent)
        report(errors)
        typer.echo(str(Path(out)))
