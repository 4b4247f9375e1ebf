"""Shard inventory tables (pandas).

An inventory lists the entries of a packed app, one row per entry:

    path    archive entry name
    kind    shard kind (`header`, `control`, `unknown`, ...)
    size    byte length as stored
    sha256  digest of the canonical content

For JSON shards the digest is taken over canonical JSON (sorted keys, compact),
so two archives that differ only in formatting or key order compare equal.
Unknown entries are hashed byte-for-byte.

`compare_inventories` reports the rows that differ between two inventories;
`verify_roundtrip` uses it to check that packed -> source tree -> packed loses
nothing.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from canvasdoc.bundle.manifest import sha256_bytes
from canvasdoc.codecs.msapp import KIND_UNKNOWN, build_archive_entries, classify_entry, read_archive_entries
from canvasdoc.core.errors import ErrorContainer
from canvasdoc.core.lifecycle import run_load

if TYPE_CHECKING:  # pragma: no cover
    import pandas as pd

    from canvasdoc.document import CanvasDocument

logger = logging.getLogger(__name__)

INVENTORY_SCHEMA: dict[str, str] = {
    "path": "string",
    "kind": "string",
    "size": "Int64",
    "sha256": "string",
}
INVENTORY_COLUMNS: list[str] = list(INVENTORY_SCHEMA)
DIFF_COLUMNS: list[str] = ["path", "status", "left_sha256", "right_sha256"]

STATUS_LEFT_ONLY = "left_only"
STATUS_RIGHT_ONLY = "right_only"
STATUS_CHANGED = "changed"


def canonical_digest(kind: str, data: bytes) -> str:
    if kind == KIND_UNKNOWN:
        return sha256_bytes(data)
    try:
        obj = json.loads(data.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return sha256_bytes(data)
    text = json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return sha256_bytes(text.encode("utf-8"))


def build_inventory(entries: dict[str, bytes]) -> "pd.DataFrame":
    """Build an inventory table from packed entries, sorted by path."""
    import pandas as pd  # local import to keep module import-light

    rows: list[dict[str, Any]] = []
    for path, data in entries.items():
        kind = classify_entry(path)
        rows.append({"path": path, "kind": kind, "size": len(data), "sha256": canonical_digest(kind, data)})

    df = pd.DataFrame(rows, columns=INVENTORY_COLUMNS)
    for col, dtype in INVENTORY_SCHEMA.items():
        df[col] = df[col].astype(dtype)
    return df.sort_values(["path"], kind="mergesort").reset_index(drop=True)


def inventory_from_msapp(path: str | Path) -> "pd.DataFrame":
    return build_inventory(read_archive_entries(path))


def inventory_from_document(doc: "CanvasDocument") -> "pd.DataFrame":
    """Inventory of what `save_to_msapp` would write for `doc`."""
    return build_inventory(build_archive_entries(doc))


def compare_inventories(left: "pd.DataFrame", right: "pd.DataFrame") -> "pd.DataFrame":
    """Return rows present on one side only or with a different digest.

    Columns: path, status (`left_only` | `right_only` | `changed`),
    left_sha256, right_sha256. Empty when both sides agree.
    """
    import pandas as pd

    merged = pd.merge(
        left.loc[:, ["path", "sha256"]],
        right.loc[:, ["path", "sha256"]],
        on="path",
        how="outer",
        suffixes=("_left", "_right"),
        indicator=True,
    )
    merged = merged.rename(columns={"sha256_left": "left_sha256", "sha256_right": "right_sha256"})

    status = pd.Series(pd.NA, index=merged.index, dtype="string")
    status.loc[merged["_merge"] == "left_only"] = STATUS_LEFT_ONLY
    status.loc[merged["_merge"] == "right_only"] = STATUS_RIGHT_ONLY
    differs = (merged["left_sha256"] != merged["right_sha256"]).fillna(False).astype(bool)
    status.loc[(merged["_merge"] == "both") & differs] = STATUS_CHANGED
    merged["status"] = status

    out = merged.loc[merged["status"].notna(), DIFF_COLUMNS]
    return out.sort_values(["path"], kind="mergesort").reset_index(drop=True)


def verify_roundtrip(
    msapp_path: str | Path,
    work_dir: str | Path,
    *,
    indent: int = 2,
) -> tuple["pd.DataFrame | None", ErrorContainer]:
    """Unpack `msapp_path` into `work_dir`, reload it and diff the repacked entries.

    Returns (differences, errors); differences is None when a step failed.
    """
    from canvasdoc.document import CanvasDocument

    doc, errors = CanvasDocument.load_from_msapp(msapp_path)
    if doc is None:
        return None, errors

    src_dir = Path(work_dir)
    errors = doc.save_to_sources(src_dir, indent=indent)
    if errors.has_errors:
        return None, errors

    reloaded, errors = CanvasDocument.load_from_sources(src_dir)
    if reloaded is None:
        return None, errors

    repacked = run_load(lambda: inventory_from_document(reloaded), errors)
    if repacked is None:
        return None, errors

    diff = compare_inventories(inventory_from_msapp(msapp_path), repacked)
    logger.info("round trip of %s: %d differing entr(ies)", msapp_path, len(diff))
    return diff, errors
