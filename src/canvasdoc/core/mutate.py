"""Data-source identity rename across shards.

`update_data_source` retargets an existing data source to another table
(new `TableName` identity string). The identity string and the table's display
name also appear inside the entry's metadata payload and inside the
properties' connection-reference text, so those are rewritten too, by plain
substring replacement. The replacement is not schema-aware: an identity
string that happens to occur elsewhere in a payload is replaced as well.

Only the matched data-source entry and the properties shard change. Every new
value is computed before anything is assigned, so a rejected call leaves the
document untouched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from canvasdoc.core.consistency import CONNECTION_REFERENCES_KEY
from canvasdoc.core.errors import DocumentError, ErrorKind
from canvasdoc.core.model import DataSourceEntry

if TYPE_CHECKING:  # pragma: no cover
    from canvasdoc.document import CanvasDocument

logger = logging.getLogger(__name__)


def _substitute(text: str, old_id: str, new_id: str, old_name: str | None, new_name: str | None) -> str:
    out = text.replace(old_id, new_id)
    if old_name and new_name is not None:
        out = out.replace(old_name, new_name)
    return out


def update_data_source(doc: "CanvasDocument", candidate: DataSourceEntry) -> None:
    """Apply `candidate`'s table identity to the existing entry with the same name.

    Raises:
        DocumentError(UnsupportedMutation): unknown name, connector type change,
            or no metadata payload under the current identity.
    """
    existing = next((ds for ds in doc.data_sources if ds.name == candidate.name), None)
    if existing is None:
        raise DocumentError(
            ErrorKind.UNSUPPORTED_MUTATION,
            f"Can't add a new data source '{candidate.name}'. Just update existing.",
        )
    if existing.api_id != candidate.api_id:
        raise DocumentError(
            ErrorKind.UNSUPPORTED_MUTATION,
            f"Can't change data source type from {existing.api_id} to {candidate.api_id}",
        )
    if existing.table_name == candidate.table_name:
        logger.debug("data source %r already targets %r; nothing to do", existing.name, existing.table_name)
        return

    old_id = existing.table_name
    new_id = candidate.table_name
    if not old_id or not new_id:
        raise DocumentError(
            ErrorKind.UNSUPPORTED_MUTATION,
            f"Data source '{candidate.name}': TableName must be set on both the existing entry and the update",
        )
    if old_id not in existing.metadata:
        raise DocumentError(
            ErrorKind.UNSUPPORTED_MUTATION,
            f"Data source '{existing.name}' has no metadata for table '{old_id}'",
        )

    old_name = existing.display_name
    new_name = candidate.display_name if old_name is not None else None
    if new_name is None:
        old_name = None

    # ---- compute ----
    new_payload = _substitute(existing.metadata[old_id], old_id, new_id, old_name, new_name)
    # Payloads under other keys are kept rather than replacing the whole map.
    new_metadata: dict[str, str] = {}
    for key, payload in existing.metadata.items():
        if key == old_id:
            new_metadata[new_id] = new_payload
        elif key != new_id:
            new_metadata[key] = payload

    properties = doc.properties
    new_properties = None
    if properties is not None and isinstance(properties.data, dict):
        refs = properties.data.get(CONNECTION_REFERENCES_KEY)
        if isinstance(refs, str):
            new_properties = dict(properties.data)
            new_properties[CONNECTION_REFERENCES_KEY] = _substitute(refs, old_id, new_id, old_name, new_name)

    # ---- assign ----
    existing.metadata = new_metadata
    existing.dataset_name = candidate.dataset_name
    existing.table_name = new_id
    if new_properties is not None:
        properties.data = new_properties

    logger.info("data source %r retargeted from %r to %r", existing.name, old_id, new_id)
