from __future__ import annotations

import logging
import sys


def configure_logging(*, level: int | str = logging.WARNING, formatter: logging.Formatter | None = None) -> None:
    """Configure root logging for the CLI.

    Every record goes to stderr; stdout is reserved for command output
    (written paths, `OK`, inventory tables).
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    if formatter is None:
        formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)
