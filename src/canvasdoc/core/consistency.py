"""Post-load consistency checks.

Runs once, right after a reader has populated the document and before any
transform. The first violation raises `DocumentError`; the load boundary turns
it into a single recorded error and returns no document.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from canvasdoc.core.errors import DocumentError, ErrorKind
from canvasdoc.core.model import Connection

if TYPE_CHECKING:  # pragma: no cover
    from canvasdoc.document import CanvasDocument

CONNECTION_REFERENCES_KEY = "LocalConnectionReferences"


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> None:
    seen: set[str] = set()
    for key, _ in pairs:
        if key in seen:
            raise DocumentError(
                ErrorKind.CONSISTENCY_VIOLATION,
                f"Document consistency error. Duplicate connection id '{key}'",
            )
        seen.add(key)


def read_connections(properties: Any) -> dict[str, Connection]:
    """Parse the connection-reference text of a properties object.

    Missing or empty text means no connections. Keys are the map keys of the
    text, which the consistency check compares against each `Connection.id`.
    """
    if not isinstance(properties, dict):
        return {}
    text = properties.get(CONNECTION_REFERENCES_KEY)
    if text is None or (isinstance(text, str) and not text.strip()):
        return {}
    if not isinstance(text, str):
        raise ValueError(f"Properties.{CONNECTION_REFERENCES_KEY}: expected str")

    # object_pairs_hook runs innermost-first, so the last call is the top level.
    objects: list[list[tuple[str, Any]]] = []

    def hook(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
        objects.append(pairs)
        return dict(pairs)

    try:
        top = json.loads(text, object_pairs_hook=hook)
    except json.JSONDecodeError as e:
        raise ValueError(f"Properties.{CONNECTION_REFERENCES_KEY}: invalid JSON ({e})") from e
    if not isinstance(top, dict):
        raise ValueError(f"Properties.{CONNECTION_REFERENCES_KEY}: expected JSON object")

    _reject_duplicate_keys(objects[-1])

    return {
        key: Connection.from_json(value, where=f"{CONNECTION_REFERENCES_KEY}[{key!r}]")
        for key, value in top.items()
    }


def check_document(doc: "CanvasDocument") -> None:
    """Enforce mandatory shards and connection referential integrity.

    Raises:
        DocumentError: MissingMandatoryShard or ConsistencyViolation.
    """
    if doc.header is None:
        raise DocumentError(ErrorKind.MISSING_MANDATORY_SHARD, "Missing header file")
    if doc.properties is None:
        raise DocumentError(ErrorKind.MISSING_MANDATORY_SHARD, "Missing properties file")

    data_source_names = {ds.name for ds in doc.data_sources}
    for key, connection in doc.connections.items():
        if key != connection.id:
            raise DocumentError(
                ErrorKind.CONSISTENCY_VIOLATION,
                f"Document consistency error. Id mismatch: key '{key}' vs id '{connection.id}'",
            )
        for name in connection.data_sources:
            if name not in data_source_names:
                raise DocumentError(
                    ErrorKind.CONSISTENCY_VIOLATION,
                    f"Document error: Connection '{name}' does not have a corresponding data source.",
                )
