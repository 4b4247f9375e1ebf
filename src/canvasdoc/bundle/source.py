"""Source-tree save/load for canvas documents.

A source tree is a folder containing:
- Header.json, Properties.json, PublishInfo.json, checksum.json
- References/Templates.json, References/Themes.json
- References/DataSources.json (entry list replaced by `[]`; entries live below)
- DataSources/<Name>.json: list of every entry with that `Name`
- Src/<Name>.json, Src/Components/<Name>.json: control trees, defaults stripped
- EditorState/<TopParent>.json: editor-only state for one tree
- Entropy/Entropy.json: orderings the split layout cannot express
- Other/<path>: unknown packed entries, raw bytes
- manifest.json: sha256 of every generated file

JSON is UTF-8, indented and newline-terminated. A file whose parsed content
is unchanged since it was read from a source tree is written back verbatim.

This module does not import the CLI.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any

from canvasdoc.codecs.msapp import (
    CHECKSUM_PATH,
    HEADER_PATH,
    PROPERTIES_PATH,
    PUBLISH_INFO_PATH,
    TEMPLATES_PATH,
    THEMES_PATH,
    normalize_entry_name,
)
from canvasdoc.core.consistency import CONNECTION_REFERENCES_KEY
from canvasdoc.core.entropy import Entropy
from canvasdoc.core.errors import DocumentError, ErrorContainer, ErrorKind
from canvasdoc.core.model import (
    ORIGIN_SOURCE,
    ControlTree,
    DataSourceEntry,
    FileEntry,
    JsonShard,
)
from canvasdoc.core.walk import walk_all
from canvasdoc.templates.builtin import CODE_ONLY_TEMPLATE_NAMES
from canvasdoc.templates.parser import APP_TYPE_TABLET, parse_template

from .manifest import (
    MANIFEST_NAME,
    build_manifest,
    find_hash_mismatches,
    manifest_paths,
    read_manifest,
    sha256_bytes,
    write_manifest,
)
from .paths import escape_filename, unescape_filename

if TYPE_CHECKING:  # pragma: no cover
    from canvasdoc.document import CanvasDocument

logger = logging.getLogger(__name__)

DATA_SOURCES_WRAPPER_PATH = "References/DataSources.json"
DATA_SOURCES_DIR = "DataSources"
SRC_DIR = "Src"
COMPONENTS_DIR = "Components"
EDITOR_STATE_DIR = "EditorState"
ENTROPY_PATH = "Entropy/Entropy.json"
OTHER_DIR = "Other"

# Generated folders, removed wholesale before a rewrite.
_GENERATED_DIRS = (DATA_SOURCES_DIR, SRC_DIR, EDITOR_STATE_DIR, "Entropy", OTHER_DIR, "References")

_SHARD_FILES: dict[str, str] = {
    HEADER_PATH: "header",
    PROPERTIES_PATH: "properties",
    PUBLISH_INFO_PATH: "publish_info",
    TEMPLATES_PATH: "templates",
    THEMES_PATH: "themes",
    CHECKSUM_PATH: "checksum",
}
_SHARD_FILES_LOWER = {k.lower(): (k, v) for k, v in _SHARD_FILES.items()}

DEFAULT_HEADER: dict[str, Any] = {"DocVersion": "1.0", "MinVersionToLoad": "1.0"}


def _dumps_pretty(obj: Any, indent: int) -> bytes:
    return (json.dumps(obj, indent=indent, ensure_ascii=False) + "\n").encode("utf-8")


def _shard_bytes(shard: JsonShard, indent: int, data: Any = None) -> bytes:
    current = shard.data if data is None else data
    raw = shard.reusable_raw(ORIGIN_SOURCE, current)
    return raw if raw is not None else _dumps_pretty(current, indent)


def _read_shard(path: Path, rel: str) -> JsonShard:
    return JsonShard.from_bytes(path.read_bytes(), origin=ORIGIN_SOURCE, where=rel)


# ----------------------------
# Writer
# ----------------------------


def build_source_files(doc: "CanvasDocument", *, indent: int = 2) -> dict[str, bytes]:
    """Project a document into source-tree files (relative posix path -> bytes). Pure."""
    files: dict[str, bytes] = {}

    for rel, attr in _SHARD_FILES.items():
        shard = getattr(doc, attr)
        if shard is not None:
            files[rel] = _shard_bytes(shard, indent)

    if doc.data_sources_file is not None:
        wrapper = doc.data_sources_file.data
        if isinstance(wrapper, dict):
            wrapper = {k: ([] if k == "DataSources" else v) for k, v in wrapper.items()}
        files[DATA_SOURCES_WRAPPER_PATH] = _shard_bytes(doc.data_sources_file, indent, wrapper)

    groups: dict[str, list[dict[str, Any]]] = {}
    for ds in doc.data_sources:
        groups.setdefault(ds.name, []).append(ds.to_json())
    for name, items in groups.items():
        files[f"{DATA_SOURCES_DIR}/{escape_filename(name)}.json"] = _dumps_pretty(items, indent)

    for name, tree in doc.control_trees.items():
        folder = f"{SRC_DIR}/{COMPONENTS_DIR}" if tree.is_component else SRC_DIR
        shard = JsonShard(data=tree.to_json(), raw=tree.raw, origin=tree.origin)
        files[f"{folder}/{escape_filename(name)}.json"] = _shard_bytes(shard, indent)

        state = doc.editor_state.to_json(name)
        if state:
            files[f"{EDITOR_STATE_DIR}/{escape_filename(name)}.json"] = _dumps_pretty(state, indent)

    # The document's own entropy is left as is.
    entropy = copy.deepcopy(doc.entropy)
    entropy.record_data_sources(doc.data_sources)
    files[ENTROPY_PATH] = _dumps_pretty(entropy.to_json(), indent)

    for path, entry in doc.unknown_files.items():
        # folders follow the normalized name; the archive spelling lives in entropy
        escaped = "/".join(escape_filename(part) for part in normalize_entry_name(path).split("/"))
        files[f"{OTHER_DIR}/{escaped}"] = entry.data

    return files


def _check_target(root: Path) -> None:
    if not root.exists():
        return
    if not root.is_dir():
        raise DocumentError(ErrorKind.INVALID_SOURCE_TREE, f"Output path '{root}' is not a directory")
    if not (root / MANIFEST_NAME).is_file() and any(root.iterdir()):
        raise DocumentError(
            ErrorKind.INVALID_SOURCE_TREE,
            f"Refusing to write into non-empty directory '{root}' without {MANIFEST_NAME}",
        )


def _clear_generated(root: Path) -> None:
    """Remove what a previous save generated; the manifest and other files stay."""
    manifest_path = root / MANIFEST_NAME
    if not manifest_path.is_file():
        return
    for rel in manifest_paths(read_manifest(manifest_path)):
        p = root / rel
        if p.is_file():
            p.unlink()
    for rel in _SHARD_FILES:
        p = root / rel
        if p.is_file():
            p.unlink()
    for folder in _GENERATED_DIRS:
        p = root / folder
        if p.is_dir():
            shutil.rmtree(p)


def write_source_tree(doc: "CanvasDocument", root: Path, errors: ErrorContainer, *, indent: int = 2) -> dict[str, Any]:
    """Write a document as a source tree and return the manifest dict.

    Files are staged in a sibling folder first; the target is only cleared
    once every file is on disk. The manifest is written last.
    """
    root = Path(root)
    files = build_source_files(doc, indent=indent)
    _check_target(root)

    parent = root.resolve().parent
    parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{root.resolve().name}-", dir=parent))
    try:
        entries: list[dict[str, Any]] = []
        for rel, data in files.items():
            p = staging / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(data)
            entries.append({"path": rel, "sha256": sha256_bytes(data)})
        manifest = build_manifest(name=doc.app_name, files=entries)

        root.mkdir(parents=True, exist_ok=True)
        _clear_generated(root)
        for rel in files:
            dest = root / rel
            dest.parent.mkdir(parents=True, exist_ok=True)
            os.replace(staging / rel, dest)
        write_manifest(root / MANIFEST_NAME, manifest)
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info("wrote source tree %s (%d files)", root, len(files))
    return manifest


# ----------------------------
# Reader
# ----------------------------


def read_source_tree(root: Path, errors: ErrorContainer, *, validate_hashes: bool = False) -> "CanvasDocument":
    """Populate a new document from a source tree (no checks, no transforms).

    Raises:
        DocumentError(InvalidSourceTree): missing folder, malformed file, or
            (with validate_hashes) a manifest mismatch.
    """
    root = Path(root)
    if not root.is_dir():
        raise DocumentError(ErrorKind.INVALID_SOURCE_TREE, f"Source directory '{root}' not found")

    if validate_hashes:
        manifest_path = root / MANIFEST_NAME
        if not manifest_path.is_file():
            raise DocumentError(ErrorKind.INVALID_SOURCE_TREE, f"{MANIFEST_NAME} not found in '{root}'")
        try:
            problems = find_hash_mismatches(root, read_manifest(manifest_path))
        except ValueError as e:
            raise DocumentError(ErrorKind.INVALID_SOURCE_TREE, str(e)) from e
        if problems:
            raise DocumentError(ErrorKind.INVALID_SOURCE_TREE, "; ".join(problems))

    try:
        return _read_layout(root, errors)
    except ValueError as e:
        raise DocumentError(ErrorKind.INVALID_SOURCE_TREE, str(e)) from e


def _read_layout(root: Path, errors: ErrorContainer) -> "CanvasDocument":
    from canvasdoc.document import CanvasDocument

    doc = CanvasDocument()
    groups: dict[str, list[DataSourceEntry]] = {}
    entropy_obj: Any = None
    others: list[tuple[str, bytes]] = []
    files = sorted((p for p in root.rglob("*") if p.is_file()), key=lambda p: p.relative_to(root).as_posix())

    for path in files:
        rel = path.relative_to(root).as_posix()
        parts = rel.split("/")
        lower = rel.lower()

        if rel == MANIFEST_NAME:
            continue
        if lower in _SHARD_FILES_LOWER:
            _, attr = _SHARD_FILES_LOWER[lower]
            setattr(doc, attr, _read_shard(path, rel))
        elif lower == DATA_SOURCES_WRAPPER_PATH.lower():
            doc.data_sources_file = _read_shard(path, rel)
        elif len(parts) == 2 and parts[0] == DATA_SOURCES_DIR and rel.endswith(".json"):
            items = _read_shard(path, rel).data
            if not isinstance(items, list):
                raise ValueError(f"{rel}: expected JSON array of data sources")
            for i, item in enumerate(items):
                ds = DataSourceEntry.from_json(item, where=f"{rel}[{i}]")
                groups.setdefault(ds.name, []).append(ds)
        elif parts[0] == SRC_DIR and rel.endswith(".json") and len(parts) in (2, 3):
            if len(parts) == 3 and parts[1] != COMPONENTS_DIR:
                errors.warn(f"unexpected file ignored: {rel}")
                continue
            kind = "component" if len(parts) == 3 else "control"
            doc.add_control_tree(ControlTree.from_bytes(path.read_bytes(), kind=kind, origin=ORIGIN_SOURCE, where=rel))
        elif len(parts) == 2 and parts[0] == EDITOR_STATE_DIR and rel.endswith(".json"):
            top_parent = unescape_filename(path.stem)
            doc.editor_state.load_json(top_parent, _read_shard(path, rel).data)
        elif rel == ENTROPY_PATH:
            entropy_obj = _read_shard(path, rel).data
        elif parts[0] == OTHER_DIR and len(parts) > 1:
            others.append(("/".join(unescape_filename(part) for part in parts[1:]), path.read_bytes()))
        else:
            errors.warn(f"unexpected file ignored: {rel}")

    doc.entropy = Entropy.from_json(entropy_obj)
    spelled = {normalize_entry_name(name): name for name in doc.entropy.archive_order}
    for name, data in others:
        doc.add_unknown_file(FileEntry(path=spelled.get(name, name), data=data))
    for ds in doc.entropy.restore_data_source_order(groups):
        doc.add_data_source_for_load(ds)

    logger.info("read source tree %s: %d control tree(s), %d data source(s)", root, len(doc.control_trees), len(doc.data_sources))
    return doc


# ----------------------------
# New app from control sources
# ----------------------------


def _referenced_templates(trees: list[ControlTree]) -> list[str]:
    names: list[str] = []
    for tree in trees:
        for node in walk_all(tree.root):
            name = node.template_name
            if name and name not in CODE_ONLY_TEMPLATE_NAMES and name not in names:
                names.append(name)
    return names


def _load_package_template(packages_path: Path, name: str, app_type: str) -> dict[str, Any]:
    path = packages_path / f"{name}.xml"
    if not path.is_file():
        raise DocumentError(ErrorKind.TEMPLATE_PARSE_FAILURE, f"Unable to find template file {name}")
    text = path.read_text(encoding="utf-8")
    try:
        template = parse_template(text, app_type)
    except ValueError as e:
        raise DocumentError(ErrorKind.TEMPLATE_PARSE_FAILURE, f"Unable to parse template file {name}") from e
    return {"Name": name, "Version": template.version or "", "Template": text}


def create_from_sources(
    app_name: str,
    packages_path: Path,
    files: list[Path],
    errors: ErrorContainer,
    *,
    app_type: str = APP_TYPE_TABLET,
) -> "CanvasDocument":
    """Build a new document from control source files plus template packages.

    A file whose parent folder is named `Components` is read as a component.
    """
    from canvasdoc.document import CanvasDocument

    if not app_name:
        raise DocumentError(ErrorKind.INVALID_SOURCE_TREE, "App name must be a non-empty string")
    packages_path = Path(packages_path)
    if not packages_path.is_dir():
        raise DocumentError(ErrorKind.INVALID_SOURCE_TREE, f"Packages folder '{packages_path}' not found")

    doc = CanvasDocument()
    for f in files:
        p = Path(f)
        if not p.is_file():
            raise DocumentError(ErrorKind.INVALID_SOURCE_TREE, f"Control source file '{p}' not found")
        kind = "component" if p.parent.name.lower() == COMPONENTS_DIR.lower() else "control"
        try:
            tree = ControlTree.from_bytes(p.read_bytes(), kind=kind, origin=ORIGIN_SOURCE, where=p.name)
        except ValueError as e:
            raise DocumentError(ErrorKind.INVALID_SOURCE_TREE, str(e)) from e
        doc.add_control_tree(tree)

    used = [
        _load_package_template(packages_path, name, app_type)
        for name in _referenced_templates(list(doc.control_trees.values()))
    ]

    doc.header = JsonShard(data=dict(DEFAULT_HEADER))
    doc.properties = JsonShard(
        data={
            "Name": app_name,
            "Id": str(uuid.uuid5(uuid.NAMESPACE_URL, app_name)),
            "DocumentAppType": app_type,
            CONNECTION_REFERENCES_KEY: "{}",
        }
    )
    doc.templates = JsonShard(data={"UsedTemplates": used})
    logger.info("created app %r from %d file(s), %d template(s)", app_name, len(files), len(used))
    return doc
