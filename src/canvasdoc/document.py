"""The canvas document aggregate.

A `CanvasDocument` is the full in-memory form of one app. It can be loaded
from and saved to either a packed `.msapp` file or an exploded source tree.

Rules:
- load/save must round trip a packed file without losing anything, including
  entries the tool does not understand;
- everything is sharded on load;
- save never mutates the document.

Every public entry point returns an `ErrorContainer`; a load returns either a
complete validated document or None, never a partial document.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from canvasdoc.core.consistency import check_document, read_connections
from canvasdoc.core.entropy import Entropy
from canvasdoc.core.errors import DocumentError, ErrorContainer, ErrorKind
from canvasdoc.core.lifecycle import run_action, run_load
from canvasdoc.core.model import Connection, ControlTree, DataSourceEntry, FileEntry, JsonShard
from canvasdoc.core.mutate import update_data_source
from canvasdoc.templates.parser import ControlTemplate
from canvasdoc.templates.resolve import TemplateStore, resolve_template_defaults
from canvasdoc.templates.theme import Theme
from canvasdoc.transforms.defaults import SourceTransformer
from canvasdoc.transforms.editor_state import EditorStateStore

logger = logging.getLogger(__name__)


class CanvasDocument:
    """In-memory canvas app: shards, side stores and the public load/save surface."""

    def __init__(self) -> None:
        self.header: JsonShard | None = None
        self.properties: JsonShard | None = None
        self.publish_info: JsonShard | None = None
        self.templates: JsonShard | None = None
        self.themes: JsonShard | None = None
        self.checksum: JsonShard | None = None
        # `References/DataSources.json` around the entry list (other keys, raw bytes).
        self.data_sources_file: JsonShard | None = None

        # Names are not unique, so this is a list, not a dict.
        self._data_sources: list[DataSourceEntry] = []
        # Key is the top parent control name.
        self._control_trees: dict[str, ControlTree] = {}
        self._unknown_files: dict[str, FileEntry] = {}

        self.entropy = Entropy()
        self.editor_state = EditorStateStore()
        self.template_store = TemplateStore()

    # ----------------------------
    # Population (readers)
    # ----------------------------

    def add_data_source_for_load(self, ds: DataSourceEntry) -> None:
        self._data_sources.append(ds)

    def add_control_tree(self, tree: ControlTree) -> None:
        name = tree.name
        if name in self._control_trees:
            raise DocumentError(
                ErrorKind.CONSISTENCY_VIOLATION,
                f"Document consistency error. Duplicate top-level control '{name}'",
            )
        self._control_trees[name] = tree

    def add_unknown_file(self, entry: FileEntry) -> None:
        if entry.path in self._unknown_files:
            raise DocumentError(ErrorKind.CONSISTENCY_VIOLATION, f"Duplicate file entry '{entry.path}'")
        self._unknown_files[entry.path] = entry

    # ----------------------------
    # Views
    # ----------------------------

    @property
    def data_sources(self) -> tuple[DataSourceEntry, ...]:
        return tuple(self._data_sources)

    @property
    def control_trees(self) -> Mapping[str, ControlTree]:
        return MappingProxyType(self._control_trees)

    @property
    def unknown_files(self) -> Mapping[str, FileEntry]:
        return MappingProxyType(self._unknown_files)

    @property
    def connections(self) -> dict[str, Connection]:
        """Connections parsed from the properties shard (rebuilt on every access)."""
        if self.properties is None:
            return {}
        return read_connections(self.properties.data)

    @property
    def app_type(self) -> str | None:
        if self.properties is None or not isinstance(self.properties.data, dict):
            return None
        value = self.properties.data.get("DocumentAppType")
        return value if isinstance(value, str) else None

    @property
    def app_name(self) -> str | None:
        if self.properties is None or not isinstance(self.properties.data, dict):
            return None
        value = self.properties.data.get("Name")
        return value if isinstance(value, str) else None

    # ----------------------------
    # Load completion / transforms
    # ----------------------------

    def on_load_complete(self) -> None:
        """Integrity checks; run once after a reader has populated the document."""
        check_document(self)

    def _templates_json(self) -> Any | None:
        return self.templates.data if self.templates is not None else None

    def _themes_json(self) -> Any | None:
        return self.themes.data if self.themes is not None else None

    def apply_after_load_transforms(self) -> None:
        defaults = resolve_template_defaults(self._templates_json(), self.app_type)
        transformer = SourceTransformer(defaults, Theme(self._themes_json()), self.editor_state)
        for tree in self._control_trees.values():
            transformer.apply_after_read(tree)
        self.template_store.set_resolved(defaults)

    def finish_load(self) -> "CanvasDocument":
        self.on_load_complete()
        self.apply_after_load_transforms()
        return self

    def _template_defaults_for_write(self) -> dict[str, ControlTemplate]:
        if self.template_store.is_resolved:
            return self.template_store.defaults()
        return resolve_template_defaults(self._templates_json(), self.app_type)

    def control_trees_for_write(self) -> list[ControlTree]:
        """Deep copies of every tree with the inverse transform applied."""
        transformer = SourceTransformer(
            self._template_defaults_for_write(),
            Theme(self._themes_json()),
            self.editor_state,
        )
        out: list[ControlTree] = []
        for tree in self._control_trees.values():
            clone = copy.deepcopy(tree)
            transformer.apply_before_write(clone)
            out.append(clone)
        return out

    # ----------------------------
    # Public load/save surface
    # ----------------------------

    @classmethod
    def load_from_msapp(cls, path: str | Path) -> tuple["CanvasDocument | None", ErrorContainer]:
        """Load a packed `.msapp`. On errors the document is None."""
        from canvasdoc.codecs.msapp import read_msapp

        errors = ErrorContainer()
        doc = run_load(lambda: _finish(read_msapp(Path(path), errors), errors), errors)
        return doc, errors

    @classmethod
    def load_from_sources(
        cls, path: str | Path, *, validate_hashes: bool = False
    ) -> tuple["CanvasDocument | None", ErrorContainer]:
        """Load an exploded source tree. On errors the document is None."""
        from canvasdoc.bundle.source import read_source_tree

        errors = ErrorContainer()
        doc = run_load(
            lambda: _finish(read_source_tree(Path(path), errors, validate_hashes=validate_hashes), errors),
            errors,
        )
        return doc, errors

    @classmethod
    def make_from_sources(
        cls,
        app_name: str,
        packages_path: str | Path,
        files: Iterable[str | Path],
        *,
        app_type: str = "DesktopOrTablet",
    ) -> tuple["CanvasDocument | None", ErrorContainer]:
        """Create a new document from control source files and template packages."""
        from canvasdoc.bundle.source import create_from_sources

        errors = ErrorContainer()
        doc = run_load(
            lambda: _finish(
                create_from_sources(
                    app_name,
                    Path(packages_path),
                    [Path(f) for f in files],
                    errors,
                    app_type=app_type,
                ),
                errors,
            ),
            errors,
        )
        return doc, errors

    def save_to_msapp(self, path: str | Path) -> ErrorContainer:
        from canvasdoc.codecs.msapp import write_msapp

        errors = ErrorContainer()
        return run_action(lambda: write_msapp(self, Path(path), errors), errors)

    def save_to_sources(self, path: str | Path, *, indent: int = 2) -> ErrorContainer:
        from canvasdoc.bundle.source import write_source_tree

        errors = ErrorContainer()
        return run_action(lambda: write_source_tree(self, Path(path), errors, indent=indent), errors)

    def update_data_source(self, candidate: DataSourceEntry) -> ErrorContainer:
        """Retarget an existing data source; see `canvasdoc.core.mutate`."""
        errors = ErrorContainer()
        return run_action(lambda: update_data_source(self, candidate), errors)


def _finish(doc: CanvasDocument, errors: ErrorContainer) -> CanvasDocument:
    # A reader that recorded errors has already failed the load.
    if errors.has_errors:
        return doc
    return doc.finish_load()


# ----------------------------
# Module-level convenience API
# ----------------------------


def load_from_msapp(path: str | Path) -> tuple[CanvasDocument | None, ErrorContainer]:
    return CanvasDocument.load_from_msapp(path)


def load_from_sources(path: str | Path, *, validate_hashes: bool = False) -> tuple[CanvasDocument | None, ErrorContainer]:
    return CanvasDocument.load_from_sources(path, validate_hashes=validate_hashes)


def make_from_sources(
    app_name: str,
    packages_path: str | Path,
    files: Iterable[str | Path],
    *,
    app_type: str = "DesktopOrTablet",
) -> tuple[CanvasDocument | None, ErrorContainer]:
    return CanvasDocument.make_from_sources(app_name, packages_path, files, app_type=app_type)


def save_to_msapp(doc: CanvasDocument, path: str | Path) -> ErrorContainer:
    return doc.save_to_msapp(path)


def save_to_sources(doc: CanvasDocument, path: str | Path, *, indent: int = 2) -> ErrorContainer:
    return doc.save_to_sources(path, indent=indent)
