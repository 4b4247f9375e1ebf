"""canvasdoc command line interface (typer)."""
