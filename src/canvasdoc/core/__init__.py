"""canvasdoc core: data model, error funneling, checks and mutation.

This package must not import the document aggregate, codecs, bundle or CLI
to avoid circular dependencies.
"""

from __future__ import annotations

from .consistency import check_document, read_connections
from .entropy import Entropy
from .errors import DocumentError, ErrorContainer, ErrorKind, ErrorRecord
from .lifecycle import run_action, run_load
from .model import (
    ORIGIN_MSAPP,
    ORIGIN_SOURCE,
    Connection,
    ControlNode,
    ControlTree,
    DataSourceEntry,
    FileEntry,
    JsonShard,
    TemplateEntry,
)
from .mutate import update_data_source
from .walk import walk_all

__all__ = [
    "ORIGIN_MSAPP",
    "ORIGIN_SOURCE",
    "Connection",
    "ControlNode",
    "ControlTree",
    "DataSourceEntry",
    "DocumentError",
    "Entropy",
    "ErrorContainer",
    "ErrorKind",
    "ErrorRecord",
    "FileEntry",
    "JsonShard",
    "TemplateEntry",
    "check_document",
    "read_connections",
    "run_action",
    "run_load",
    "update_data_source",
    "walk_all",
]
