"""Core data model for canvas documents.

Shards stay close to their JSON form: known fields are lifted into attributes,
everything else is carried in `extra`/`data` dicts in original key order so
that untouched content round trips.

This module must not import codecs/bundle/cli.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

# Formats a raw shard can originate from.
ORIGIN_MSAPP = "msapp"
ORIGIN_SOURCE = "source"


def _require_dict(value: Any, *, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{where}: expected JSON object, got {type(value).__name__}")
    return value


def _opt_str(value: Any, *, where: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{where}: expected str, got {type(value).__name__}")
    return value


# ----------------------------
# Generic JSON shard
# ----------------------------


@dataclass
class JsonShard:
    """Parsed JSON shard plus the exact bytes it was read from."""

    data: Any
    raw: bytes | None = None
    origin: str | None = None

    @classmethod
    def from_bytes(cls, raw: bytes, *, origin: str, where: str) -> "JsonShard":
        try:
            data = json.loads(raw.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"{where}: invalid JSON ({e})") from e
        return cls(data=data, raw=bytes(raw), origin=origin)

    def reusable_raw(self, origin: str, data: Any = None) -> bytes | None:
        """Return `raw` if it still encodes `data` (default: own data) for `origin`.

        Pure check; the shard is never updated.
        """
        if self.raw is None or self.origin != origin:
            return None
        current = self.data if data is None else data
        try:
            original = json.loads(self.raw.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None
        return self.raw if original == current else None


# ----------------------------
# Data sources / connections
# ----------------------------


@dataclass
class DataSourceEntry:
    """One entry of `References/DataSources.json`.

    Names are not unique. `table_name` is the opaque identity string (often a
    GUID) that also appears inside `metadata` payloads and inside the
    properties' connection-reference text.
    """

    name: str
    api_id: str | None = None
    table_name: str | None = None
    dataset_name: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str | None:
        """`displayName` from the metadata payload stored under `table_name`."""
        if self.table_name is None:
            return None
        payload = self.metadata.get(self.table_name)
        if not isinstance(payload, str):
            return None
        try:
            obj = json.loads(payload)
        except json.JSONDecodeError:
            return None
        if isinstance(obj, dict) and isinstance(obj.get("displayName"), str):
            return obj["displayName"]
        return None

    @classmethod
    def from_json(cls, obj: Any, *, where: str = "DataSource") -> "DataSourceEntry":
        d = _require_dict(obj, where=where)
        name = d.get("Name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"{where}.Name: must be a non-empty string")
        metadata_raw = d.get("DataEntityMetadataJson") or {}
        metadata = _require_dict(metadata_raw, where=f"{where}.DataEntityMetadataJson")
        for k, v in metadata.items():
            if not isinstance(v, str):
                raise ValueError(f"{where}.DataEntityMetadataJson[{k!r}]: expected str")
        return cls(
            name=name,
            api_id=_opt_str(d.get("ApiId"), where=f"{where}.ApiId"),
            table_name=_opt_str(d.get("TableName"), where=f"{where}.TableName"),
            dataset_name=_opt_str(d.get("DatasetName"), where=f"{where}.DatasetName"),
            metadata=dict(metadata),
            extra=dict(d),
        )

    def to_json(self) -> dict[str, Any]:
        out = dict(self.extra)
        out["Name"] = self.name
        for key, value in (
            ("ApiId", self.api_id),
            ("TableName", self.table_name),
            ("DatasetName", self.dataset_name),
        ):
            if value is not None or key in out:
                out[key] = value
        if self.metadata or "DataEntityMetadataJson" in out:
            out["DataEntityMetadataJson"] = dict(self.metadata)
        return out


@dataclass(frozen=True)
class Connection:
    """One entry of the properties' `LocalConnectionReferences` map."""

    id: str | None
    data_sources: tuple[str, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_json(cls, obj: Any, *, where: str = "Connection") -> "Connection":
        d = _require_dict(obj, where=where)
        names = d.get("dataSources") or []
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ValueError(f"{where}.dataSources: expected list[str]")
        return cls(
            id=_opt_str(d.get("id"), where=f"{where}.id"),
            data_sources=tuple(names),
            extra=dict(d),
        )


# ----------------------------
# Control trees
# ----------------------------


@dataclass
class ControlNode:
    """One control: its JSON object (minus children) and its child nodes.

    `data` keeps the `Children` key (value unused) so its position survives.
    """

    data: dict[str, Any]
    children: list["ControlNode"] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"ControlNode(name={self.name!r}, children={len(self.children)})"

    @property
    def name(self) -> str | None:
        name = self.data.get("Name")
        return name if isinstance(name, str) else None

    @property
    def template_name(self) -> str | None:
        template = self.data.get("Template")
        if isinstance(template, dict) and isinstance(template.get("Name"), str):
            return template["Name"]
        return None

    @property
    def style_name(self) -> str | None:
        style = self.data.get("StyleName")
        return style if isinstance(style, str) and style else None

    @property
    def rules(self) -> list[dict[str, Any]]:
        rules = self.data.get("Rules")
        return rules if isinstance(rules, list) else []

    @rules.setter
    def rules(self, value: list[dict[str, Any]]) -> None:
        self.data["Rules"] = value

    @classmethod
    def from_json(cls, obj: Any, *, where: str = "TopParent") -> "ControlNode":
        d = _require_dict(obj, where=where)
        children_raw = d.get("Children") or []
        if not isinstance(children_raw, list):
            raise ValueError(f"{where}.Children: expected JSON array")
        children = [
            cls.from_json(c, where=f"{where}.Children[{i}]") for i, c in enumerate(children_raw)
        ]
        # Children slot: [] when it held a list, None when it was null.
        data = {k: (([] if isinstance(v, list) else None) if k == "Children" else v) for k, v in d.items()}
        return cls(data=data, children=children)

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for k, v in self.data.items():
            if k == "Children":
                out[k] = None if v is None and not self.children else [c.to_json() for c in self.children]
            else:
                out[k] = v
        if self.children and "Children" not in out:
            out["Children"] = [c.to_json() for c in self.children]
        return out


@dataclass
class ControlTree:
    """One top-level control or component file."""

    root: ControlNode
    kind: str = "control"  # "control" | "component"
    envelope: dict[str, Any] = field(default_factory=lambda: {"TopParent": None})
    raw: bytes | None = None
    origin: str | None = None

    @property
    def name(self) -> str:
        name = self.root.name
        if name is None:
            raise ValueError("control tree root has no Name")
        return name

    @property
    def is_component(self) -> bool:
        return self.kind == "component"

    @classmethod
    def from_bytes(cls, raw: bytes, *, kind: str, origin: str, where: str) -> "ControlTree":
        shard = JsonShard.from_bytes(raw, origin=origin, where=where)
        d = _require_dict(shard.data, where=where)
        if "TopParent" not in d:
            raise ValueError(f"{where}: missing 'TopParent'")
        root = ControlNode.from_json(d["TopParent"], where=f"{where}.TopParent")
        envelope = {k: (None if k == "TopParent" else v) for k, v in d.items()}
        return cls(root=root, kind=kind, envelope=envelope, raw=shard.raw, origin=origin)

    def to_json(self) -> dict[str, Any]:
        return {k: (self.root.to_json() if k == "TopParent" else v) for k, v in self.envelope.items()}


# ----------------------------
# Templates / unknown files
# ----------------------------


@dataclass(frozen=True)
class TemplateEntry:
    """One `UsedTemplates` item: a template name and its raw definition text."""

    name: str
    version: str | None
    template: str

    @classmethod
    def from_json(cls, obj: Any, *, where: str = "UsedTemplates[*]") -> "TemplateEntry":
        d = _require_dict(obj, where=where)
        name = d.get("Name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"{where}.Name: must be a non-empty string")
        text = d.get("Template")
        if not isinstance(text, str):
            raise ValueError(f"{where}.Template: expected str")
        return cls(name=name, version=_opt_str(d.get("Version"), where=f"{where}.Version"), template=text)


@dataclass(frozen=True)
class FileEntry:
    """A file the readers do not understand, kept as raw bytes."""

    path: str
    data: bytes
