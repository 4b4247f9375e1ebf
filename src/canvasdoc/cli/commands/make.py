"""`canvasdoc make` command.

Creates a new `.msapp` from control source files plus a folder of template
packages (`<template-name>.xml`). Files under a `Components/` folder become
components.
"""

from __future__ import annotations

from pathlib import Path

import typer

from canvasdoc.cli.reporting import report
from canvasdoc.document import CanvasDocument
from canvasdoc.templates.parser import APP_TYPE_PHONE, APP_TYPE_TABLET


def register(app: typer.Typer) -> None:
    @app.command("make")
    def make(
        name: str = typer.Argument(..., help="App name."),
        packages: str = typer.Argument(..., help="Folder containing <template>.xml files."),
        out: str = typer.Argument(..., help="Output .msapp file path."),
        files: list[str] = typer.Argument(..., help="Control source files (TopParent JSON)."),
        app_type: str = typer.Option(APP_TYPE_TABLET, "--app-type", help="Phone|DesktopOrTablet."),
    ) -> None:
        """Create an `.msapp` from control sources and template packages."""
        if app_type not in (APP_TYPE_PHONE, APP_TYPE_TABLET):
            raise typer.BadParameter(f"app type must be '{APP_TYPE_PHONE}' or '{APP_TYPE_TABLET}'")

        doc, errors = CanvasDocument.make_from_sources(name, packages, files, app_type=app_type)
        report(errors)

        errors = doc.save_to_msapp(out)
        report(errors)
        typer.echo(str(Path(out)))
