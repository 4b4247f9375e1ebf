"""Default-value transform between the packed and the in-memory control form.

`apply_after_read` runs once per control tree after a load:
- rules whose script equals the node's default (theme style value first,
  template default otherwise) are removed from the node;
- editor-only keys are lifted out of the node;
both are kept in the editor-state store together with the node's original
key order and one slot key per original rule. A state already present in the
store (hydrated from a source tree) is kept and extended rather than replaced.

`apply_before_write` is the exact inverse and only reads the store. Current
rules are matched to slots per property in order, filling kept slots first
and then stripped ones, so an edited rule takes the place of the default it
replaced. Unmatched slots with a stripped rule get that rule back, and rules
no slot accounts for follow at the end.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from canvasdoc.core.model import ControlNode, ControlTree
from canvasdoc.core.walk import walk_all
from canvasdoc.templates.parser import ControlTemplate
from canvasdoc.templates.theme import Theme
from canvasdoc.transforms.editor_state import (
    EDITOR_ONLY_KEYS,
    ControlState,
    EditorStateStore,
    new_slot_key,
    rule_slot_keys,
    slot_property,
)

logger = logging.getLogger(__name__)


def _rule_property(rule: dict[str, Any]) -> str | None:
    prop = rule.get("Property")
    return prop if isinstance(prop, str) else None


def match_rule_slots(rules: list[dict[str, Any]], state: ControlState) -> list[str | None]:
    """Slot key for each rule in `rules`, None where no slot is left."""
    queues: dict[str | None, list[str]] = {}
    stripped: dict[str | None, list[str]] = {}
    for key in state.rule_order:
        target = stripped if key in state.default_rules else queues
        target.setdefault(slot_property(key), []).append(key)
    for prop, keys in stripped.items():
        queues.setdefault(prop, []).extend(keys)

    matched: list[str | None] = []
    for rule in rules:
        queue = queues.get(_rule_property(rule))
        matched.append(queue.pop(0) if queue else None)
    return matched


class SourceTransformer:
    def __init__(
        self,
        template_defaults: dict[str, ControlTemplate],
        theme: Theme,
        editor_state: EditorStateStore,
    ):
        self._defaults = template_defaults
        self._theme = theme
        self._store = editor_state

    def default_for(self, node: ControlNode, property_name: str) -> str | None:
        value = self._theme.try_lookup(node.style_name, property_name)
        if value is not None:
            return value
        template_name = node.template_name
        if template_name is None:
            return None
        template = self._defaults.get(template_name)
        if template is None:
            return None
        return template.input_defaults.get(property_name)

    # ----------------------------
    # Forward (after load)
    # ----------------------------

    def apply_after_read(self, tree: ControlTree) -> None:
        top_parent = tree.name
        stripped = 0
        for node in walk_all(tree.root):
            name = node.name
            if name is None:
                continue
            state = self._store.get(name)
            if state is None:
                state = ControlState(
                    name=name,
                    top_parent=top_parent,
                    key_order=list(node.data.keys()),
                    rule_order=rule_slot_keys(node.rules),
                )
                self._store.set(state)
            else:
                state.top_parent = top_parent

            for key in EDITOR_ONLY_KEYS:
                if key in node.data:
                    state.editor_properties[key] = node.data.pop(key)

            if "Rules" not in node.data:
                continue
            rules = node.rules
            kept: list[dict[str, Any]] = []
            for rule, slot in zip(rules, match_rule_slots(rules, state)):
                prop = _rule_property(rule)
                default = self.default_for(node, prop) if prop is not None else None
                if default is None or rule.get("InvariantScript") != default:
                    kept.append(rule)
                    continue
                if slot is None:
                    # rule added in the source form; it gets a slot at the end
                    slot = new_slot_key(prop, set(state.rule_order) | set(state.default_rules))
                    state.rule_order.append(slot)
                state.default_rules[slot] = rule
                stripped += 1
            node.rules = kept
        logger.debug("%s: stripped %d default rule(s)", top_parent, stripped)

    # ----------------------------
    # Inverse (before packed write)
    # ----------------------------

    def apply_before_write(self, tree: ControlTree) -> None:
        for node in walk_all(tree.root):
            state = self._store.get(node.name)
            if state is None:
                continue
            self._restore_rules(node, state)
            self._restore_keys(node, state)

    @staticmethod
    def _restore_rules(node: ControlNode, state: ControlState) -> None:
        current = node.rules
        if "Rules" not in node.data and not state.default_rules:
            return

        slots = match_rule_slots(current, state)
        by_slot = {slot: rule for rule, slot in zip(current, slots) if slot is not None}

        rebuilt: list[dict[str, Any]] = []
        for slot in state.rule_order:
            if slot in by_slot:
                rebuilt.append(by_slot[slot])
            elif slot in state.default_rules:
                rebuilt.append(copy.deepcopy(state.default_rules[slot]))

        # rules added after the original load keep their relative order
        rebuilt.extend(rule for rule, slot in zip(current, slots) if slot is None)

        ordered = set(state.rule_order)
        for slot, rule in state.default_rules.items():
            if slot not in ordered:
                rebuilt.append(copy.deepcopy(rule))

        node.rules = rebuilt

    @staticmethod
    def _restore_keys(node: ControlNode, state: ControlState) -> None:
        restored: dict[str, Any] = {}
        for key in state.key_order:
            if key in state.editor_properties:
                restored[key] = copy.deepcopy(state.editor_properties[key])
            elif key in node.data:
                restored[key] = node.data[key]
        for key, value in node.data.items():
            if key not in restored:
                restored[key] = value
        for key, value in state.editor_properties.items():
            if key not in restored:
                restored[key] = copy.deepcopy(value)
        node.data = restored
