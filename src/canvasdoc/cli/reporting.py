"""Shared CLI output helpers."""

from __future__ import annotations

import typer

from canvasdoc.config import Settings
from canvasdoc.core.errors import ErrorContainer


def settings_from(ctx: typer.Context) -> Settings:
    obj = ctx.obj
    return obj if isinstance(obj, Settings) else Settings.from_env()


def report(errors: ErrorContainer) -> None:
    """Echo warnings and errors to stderr; exit 1 if any error was recorded."""
    for message in errors.warnings:
        typer.echo(f"warning: {message}", err=True)
    if errors.has_errors:
        for record in errors:
            typer.echo(str(record), err=True)
        raise typer.Exit(code=1)
