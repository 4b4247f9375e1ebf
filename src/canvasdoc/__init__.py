"""canvasdoc: canvas app documents between packed and source form.

Loads an `.msapp` (zip of JSON shards) or an exploded source tree into one
in-memory `CanvasDocument`, checks it, and saves it back in either form
without losing anything, including entries the tool does not understand.
"""

from __future__ import annotations

from canvasdoc.core.errors import DocumentError, ErrorContainer, ErrorKind, ErrorRecord
from canvasdoc.core.model import DataSourceEntry
from canvasdoc.document import (
    CanvasDocument,
    load_from_msapp,
    load_from_sources,
    make_from_sources,
    save_to_msapp,
    save_to_sources,
)

__version__ = "0.1.0"


def update_data_source(doc: CanvasDocument, candidate: DataSourceEntry) -> ErrorContainer:
    return doc.update_data_source(candidate)


__all__ = [
    "__version__",
    "CanvasDocument",
    "DataSourceEntry",
    "DocumentError",
    "ErrorContainer",
    "ErrorKind",
    "ErrorRecord",
    "load_from_msapp",
    "load_from_sources",
    "make_from_sources",
    "save_to_msapp",
    "save_to_sources",
    "update_data_source",
]
