"""Packed `.msapp` codec (zip archive) for canvasdoc.

Recognized entries (case-insensitive):
- `Header.json`, `Properties.json`, `PublishInfo.json`, `checksum.json`
- `References/Templates.json`, `References/Themes.json`
- `References/DataSources.json` (`{"DataSources": [...]}`)
- `Controls/<id>.json`, `Components/<id>.json` (`{"TopParent": {...}}`)

Everything else is an unknown file, kept as raw bytes and written back
verbatim. Entry names are classified with `\` read as `/`, but the name as
spelled in the archive is what the document keeps and writes back. The
archive entry order is recorded in the document's entropy and reproduced on
save; entries with no recorded position follow in the order of the table
above and get the canonical spelling.

Written JSON is compact. A shard that still equals the bytes it was read
from (and was read from a packed file) is written back byte-for-byte.
"""

from __future__ import annotations

import json
import logging
import re
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

from canvasdoc.core.errors import ErrorContainer
from canvasdoc.core.model import (
    ORIGIN_MSAPP,
    ControlTree,
    DataSourceEntry,
    FileEntry,
    JsonShard,
)

if TYPE_CHECKING:  # pragma: no cover
    from canvasdoc.document import CanvasDocument

logger = logging.getLogger(__name__)

# ----------------------------
# Entry classification
# ----------------------------

KIND_HEADER = "header"
KIND_PROPERTIES = "properties"
KIND_PUBLISH_INFO = "publish_info"
KIND_TEMPLATES = "templates"
KIND_THEMES = "themes"
KIND_DATA_SOURCES = "data_sources"
KIND_CONTROL = "control"
KIND_COMPONENT = "component"
KIND_CHECKSUM = "checksum"
KIND_UNKNOWN = "unknown"

HEADER_PATH = "Header.json"
PROPERTIES_PATH = "Properties.json"
PUBLISH_INFO_PATH = "PublishInfo.json"
TEMPLATES_PATH = "References/Templates.json"
THEMES_PATH = "References/Themes.json"
DATA_SOURCES_PATH = "References/DataSources.json"
CHECKSUM_PATH = "checksum.json"

_FIXED_PATHS: dict[str, str] = {
    HEADER_PATH.lower(): KIND_HEADER,
    PROPERTIES_PATH.lower(): KIND_PROPERTIES,
    PUBLISH_INFO_PATH.lower(): KIND_PUBLISH_INFO,
    TEMPLATES_PATH.lower(): KIND_TEMPLATES,
    THEMES_PATH.lower(): KIND_THEMES,
    DATA_SOURCES_PATH.lower(): KIND_DATA_SOURCES,
    CHECKSUM_PATH.lower(): KIND_CHECKSUM,
}

_CONTROL_RE = re.compile(r"^controls/[^/]+\.json$", re.IGNORECASE)
_COMPONENT_RE = re.compile(r"^components/[^/]+\.json$", re.IGNORECASE)

# Shard attribute on the document for each single-file kind.
_SHARD_ATTRS: dict[str, str] = {
    KIND_HEADER: "header",
    KIND_PROPERTIES: "properties",
    KIND_PUBLISH_INFO: "publish_info",
    KIND_TEMPLATES: "templates",
    KIND_THEMES: "themes",
    KIND_CHECKSUM: "checksum",
}

_SHARD_PATHS: dict[str, str] = {
    KIND_HEADER: HEADER_PATH,
    KIND_PROPERTIES: PROPERTIES_PATH,
    KIND_PUBLISH_INFO: PUBLISH_INFO_PATH,
    KIND_TEMPLATES: TEMPLATES_PATH,
    KIND_THEMES: THEMES_PATH,
    KIND_CHECKSUM: CHECKSUM_PATH,
}


def normalize_entry_name(name: str) -> str:
    return name.replace("\\", "/").lstrip("/")


def entry_key(name: str) -> str:
    """Case- and separator-insensitive identity of an entry name."""
    return normalize_entry_name(name).lower()


def classify_entry(name: str) -> str:
    """Return the shard kind of an archive entry name."""
    key = entry_key(name)
    if key in _FIXED_PATHS:
        return _FIXED_PATHS[key]
    if _CONTROL_RE.match(key):
        return KIND_CONTROL
    if _COMPONENT_RE.match(key):
        return KIND_COMPONENT
    return KIND_UNKNOWN


def dumps_compact(obj: Any) -> bytes:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


# ----------------------------
# Archive I/O
# ----------------------------


def read_archive_entries(path: str | Path) -> dict[str, bytes]:
    """Read every file entry of a zip archive, in archive order, keyed as spelled."""
    p = Path(path)
    entries: dict[str, bytes] = {}
    seen: set[str] = set()
    with zipfile.ZipFile(p, "r") as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            name = info.filename
            normalized = normalize_entry_name(name)
            if normalized in seen:
                raise ValueError(f"{p.name}: duplicate archive entry '{normalized}'")
            seen.add(normalized)
            entries[name] = zf.read(info)
    return entries


def write_archive_entries(path: str | Path, entries: dict[str, bytes]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(p, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)


# ----------------------------
# Reader
# ----------------------------


def read_msapp(path: Path, errors: ErrorContainer) -> "CanvasDocument":
    """Populate a new document from a packed file (no checks, no transforms)."""
    from canvasdoc.document import CanvasDocument

    entries = read_archive_entries(path)
    doc = CanvasDocument()
    doc.entropy.archive_order = list(entries)

    for name, data in entries.items():
        kind = classify_entry(name)
        if kind in _SHARD_ATTRS:
            setattr(doc, _SHARD_ATTRS[kind], JsonShard.from_bytes(data, origin=ORIGIN_MSAPP, where=name))
        elif kind == KIND_DATA_SOURCES:
            shard = JsonShard.from_bytes(data, origin=ORIGIN_MSAPP, where=name)
            doc.data_sources_file = shard
            for ds in _data_source_list(shard.data, where=name):
                doc.add_data_source_for_load(ds)
        elif kind in (KIND_CONTROL, KIND_COMPONENT):
            tree = ControlTree.from_bytes(data, kind=kind, origin=ORIGIN_MSAPP, where=name)
            doc.add_control_tree(tree)
            doc.entropy.control_paths[tree.name] = name
        else:
            logger.debug("preserving unknown entry %s (%d bytes)", name, len(data))
            doc.add_unknown_file(FileEntry(path=name, data=data))

    if doc.unknown_files:
        errors.warn(f"{len(doc.unknown_files)} unrecognized file(s) preserved as-is")
    logger.info("read %s: %d control tree(s), %d data source(s)", path, len(doc.control_trees), len(doc.data_sources))
    return doc


def _data_source_list(obj: Any, *, where: str) -> list[DataSourceEntry]:
    if not isinstance(obj, dict):
        raise ValueError(f"{where}: expected JSON object")
    items = obj.get("DataSources") or []
    if not isinstance(items, list):
        raise ValueError(f"{where}: DataSources must be an array")
    return [DataSourceEntry.from_json(item, where=f"{where}.DataSources[{i}]") for i, item in enumerate(items)]


# ----------------------------
# Writer
# ----------------------------


def _shard_bytes(shard: JsonShard, data: Any = None) -> bytes:
    current = shard.data if data is None else data
    raw = shard.reusable_raw(ORIGIN_MSAPP, current)
    return raw if raw is not None else dumps_compact(current)


def _control_path(tree: ControlTree, preferred: str | None, taken: set[str]) -> str:
    if preferred and classify_entry(preferred) == tree.kind and entry_key(preferred) not in taken:
        return preferred
    folder = "Components" if tree.is_component else "Controls"
    uid = tree.root.data.get("ControlUniqueId")
    stem = str(uid) if uid not in (None, "") else tree.name
    stem = stem.replace("/", "_").replace("\\", "_")
    candidate = f"{folder}/{stem}.json"
    n = 1
    while entry_key(candidate) in taken:
        candidate = f"{folder}/{stem}_{n}.json"
        n += 1
    return candidate


def build_archive_entries(doc: "CanvasDocument") -> dict[str, bytes]:
    """Project a document into packed entries (path -> bytes). Pure."""
    entries: dict[str, bytes] = {}

    for kind in (KIND_HEADER, KIND_PROPERTIES, KIND_PUBLISH_INFO, KIND_TEMPLATES, KIND_THEMES):
        shard = getattr(doc, _SHARD_ATTRS[kind])
        if shard is not None:
            entries[_SHARD_PATHS[kind]] = _shard_bytes(shard)

    if doc.data_sources_file is not None or doc.data_sources:
        wrapper: dict[str, Any] = {}
        if doc.data_sources_file is not None and isinstance(doc.data_sources_file.data, dict):
            wrapper = dict(doc.data_sources_file.data)
        wrapper["DataSources"] = [ds.to_json() for ds in doc.data_sources]
        if doc.data_sources_file is not None:
            entries[DATA_SOURCES_PATH] = _shard_bytes(doc.data_sources_file, wrapper)
        else:
            entries[DATA_SOURCES_PATH] = dumps_compact(wrapper)

    taken = {entry_key(p) for p in entries}
    for tree in doc.control_trees_for_write():
        path = _control_path(tree, doc.entropy.control_paths.get(tree.name), taken)
        taken.add(entry_key(path))
        content = tree.to_json()
        shard = JsonShard(data=content, raw=tree.raw, origin=tree.origin)
        entries[path] = _shard_bytes(shard)

    if doc.checksum is not None:
        entries[CHECKSUM_PATH] = _shard_bytes(doc.checksum)

    for path, entry in doc.unknown_files.items():
        entries[path] = entry.data

    # Reproduce recorded archive order (and spelling); new entries keep canonical order.
    ordered: dict[str, bytes] = {}
    placed: set[str] = set()
    by_key: dict[str, list[str]] = {}
    for p in entries:
        by_key.setdefault(entry_key(p), []).append(p)
    for name in doc.entropy.archive_order:
        candidates = by_key.get(entry_key(name), [])
        actual = name if name in candidates else next((c for c in candidates if c not in placed), None)
        if actual is not None and actual not in placed:
            ordered[name] = entries[actual]
            placed.add(actual)
    for name, data in entries.items():
        if name not in placed:
            ordered[name] = data
    return ordered


def write_msapp(doc: "CanvasDocument", path: Path, errors: ErrorContainer) -> None:
    entries = build_archive_entries(doc)
    write_archive_entries(path, entries)
    logger.info("wrote %s (%d entries)", path, len(entries))
