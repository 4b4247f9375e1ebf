"""`canvasdoc update-datasource` command.

Retargets an existing data source of a source tree to another table. The
candidate JSON names the data source to change (`Name`), its connector
(`ApiId`, must not change) and the new `TableName`/`DatasetName`. The tree is
rewritten in place.
"""

from __future__ import annotations

from pathlib import Path

import typer

from canvasdoc.cli.reporting import report, settings_from
from canvasdoc.document import CanvasDocument
from canvasdoc.io.datasource import DataSourceValidationError, read_datasource_json


def register(app: typer.Typer) -> None:
    @app.command("update-datasource")
    def update_datasource(
        ctx: typer.Context,
        src: str = typer.Argument(..., help="Source-tree directory (rewritten in place)."),
        candidate: str = typer.Argument(..., help="Candidate data-source JSON file."),
    ) -> None:
        """Retarget an existing data source to a new table."""
        settings = settings_from(ctx)
        try:
            entry = read_datasource_json(candidate)
        except DataSourceValidationError as e:
            raise typer.BadParameter(str(e)) from e

        doc, errors = CanvasDocument.load_from_sources(src, validate_hashes=settings.validate_hashes)
        report(errors)

        errors = doc.update_data_source(entry)
        report(errors)

        errors = doc.save_to_sources(src, indent=settings.json_indent)
        report(errors)
        typer.echo(str(Path(src)))
