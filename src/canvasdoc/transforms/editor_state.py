"""Editor-state side store.

Holds, per control name, what the in-memory (source) form of a control does
not carry: editor-only keys, the node's original key order and rule order, and
the rules stripped because they equalled their default. The packed writer
needs all of it to rebuild the original control JSON.

Persisted in the source tree as `EditorState/<TopParent>.json`:

    {
      "Screen1": {
        "KeyOrder": [...], "RuleOrder": [...],
        "EditorProperties": {...}, "DefaultRules": {"Fill": {...}}
      },
      ...
    }

`RuleOrder` holds one slot key per original rule. The first rule for a
property is keyed by the property name, later ones as `<Property>#<n>`, and a
rule without a `Property` by its position as `#<index>`. `DefaultRules` is
keyed by the same slot keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

# Keys that only matter to the authoring UI.
EDITOR_ONLY_KEYS: tuple[str, ...] = (
    "ControlUniqueId",
    "PublishOrderIndex",
    "Index",
    "IsLocked",
    "LayoutName",
    "MetaDataIDKey",
    "PersistMetaDataIDKey",
    "IsFromScreenLayout",
    "ControlPropertyState",
)


def rule_slot_keys(rules: list[dict[str, Any]]) -> list[str]:
    """One slot key per rule, in list order."""
    counts: dict[str, int] = {}
    keys: list[str] = []
    for index, rule in enumerate(rules):
        prop = rule.get("Property")
        if not isinstance(prop, str):
            keys.append(f"#{index}")
            continue
        n = counts.get(prop, 0) + 1
        counts[prop] = n
        keys.append(prop if n == 1 else f"{prop}#{n}")
    return keys


def slot_property(key: str) -> str | None:
    """Property a slot key stands for; None for a positional slot."""
    if key.startswith("#"):
        return None
    head, sep, tail = key.rpartition("#")
    if sep and tail.isdigit():
        return head
    return key


def new_slot_key(prop: str, taken: set[str]) -> str:
    key, n = prop, 1
    while key in taken:
        n += 1
        key = f"{prop}#{n}"
    return key


@dataclass
class ControlState:
    name: str
    top_parent: str
    key_order: list[str] = field(default_factory=list)
    rule_order: list[str] = field(default_factory=list)
    editor_properties: dict[str, Any] = field(default_factory=dict)
    default_rules: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {
            "KeyOrder": list(self.key_order),
            "RuleOrder": list(self.rule_order),
            "EditorProperties": dict(self.editor_properties),
            "DefaultRules": {k: dict(v) for k, v in self.default_rules.items()},
        }

    @classmethod
    def from_json(cls, name: str, top_parent: str, obj: Any) -> "ControlState":
        where = f"EditorState/{top_parent}.json[{name!r}]"
        if not isinstance(obj, dict):
            raise ValueError(f"{where}: expected JSON object")
        key_order = obj.get("KeyOrder") or []
        rule_order = obj.get("RuleOrder") or []
        for label, value in (("KeyOrder", key_order), ("RuleOrder", rule_order)):
            if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
                raise ValueError(f"{where}.{label}: expected list[str]")
        editor_properties = obj.get("EditorProperties") or {}
        default_rules = obj.get("DefaultRules") or {}
        if not isinstance(editor_properties, dict):
            raise ValueError(f"{where}.EditorProperties: expected JSON object")
        if not isinstance(default_rules, dict) or not all(isinstance(v, dict) for v in default_rules.values()):
            raise ValueError(f"{where}.DefaultRules: expected object of rule objects")
        return cls(
            name=name,
            top_parent=top_parent,
            key_order=list(key_order),
            rule_order=list(rule_order),
            editor_properties=dict(editor_properties),
            default_rules={k: dict(v) for k, v in default_rules.items()},
        )


class EditorStateStore:
    """Control name -> `ControlState`. Control names are unique per app."""

    def __init__(self) -> None:
        self._states: dict[str, ControlState] = {}

    def get(self, name: str | None) -> ControlState | None:
        if name is None:
            return None
        return self._states.get(name)

    def set(self, state: ControlState) -> None:
        self._states[state.name] = state

    def remove(self, name: str) -> None:
        self._states.pop(name, None)

    def for_top_parent(self, top_parent: str) -> list[ControlState]:
        return [s for s in self._states.values() if s.top_parent == top_parent]

    def top_parents(self) -> list[str]:
        return sorted({s.top_parent for s in self._states.values()})

    def __contains__(self, name: object) -> bool:
        return name in self._states

    def __iter__(self) -> Iterator[ControlState]:
        return iter(list(self._states.values()))

    def __len__(self) -> int:
        return len(self._states)

    # ----------------------------
    # Source-tree persistence
    # ----------------------------

    def to_json(self, top_parent: str) -> dict[str, Any]:
        return {s.name: s.to_json() for s in self.for_top_parent(top_parent)}

    def load_json(self, top_parent: str, obj: Any) -> None:
        if not isinstance(obj, dict):
            raise ValueError(f"EditorState/{top_parent}.json: expected JSON object")
        for name, state in obj.items():
            self.set(ControlState.from_json(str(name), top_parent, state))
