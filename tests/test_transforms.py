from __future__ import annotations

import copy
import json

from canvasdoc.core.model import ControlNode, ControlTree
from canvasdoc.core.walk import walk_all
from canvasdoc.templates.parser import APP_TYPE_PHONE, parse_template
from canvasdoc.templates.builtin import add_code_only_templates
from canvasdoc.templates.theme import Theme
from canvasdoc.transforms.defaults import SourceTransformer
from canvasdoc.transforms.editor_state import EditorStateStore

from conftest import BUTTON_TEMPLATE_XML, make_screen_tree, make_themes


def _tree() -> ControlTree:
    raw = json.dumps(make_screen_tree()).encode("utf-8")
    return ControlTree.from_bytes(raw, kind="control", origin="msapp", where="Controls/1.json")


def _transformer(store: EditorStateStore) -> SourceTransformer:
    defaults = {"button": parse_template(BUTTON_TEMPLATE_XML, APP_TYPE_PHONE)}
    add_code_only_templates(defaults, APP_TYPE_PHONE)
    return SourceTransformer(defaults, Theme(make_themes()), store)


def test_walk_all_is_preorder_parent_first() -> None:
    leaf = lambda n: ControlNode(data={"Name": n})  # noqa: E731
    root = ControlNode(
        data={"Name": "A"},
        children=[ControlNode(data={"Name": "B"}, children=[leaf("C"), leaf("D")]), leaf("E")],
    )
    assert [n.name for n in walk_all(root)] == ["A", "B", "C", "D", "E"]


def test_walk_all_yields_references() -> None:
    root = ControlNode(data={"Name": "A"}, children=[ControlNode(data={"Name": "B"})])
    for node in walk_all(root):
        node.data["Seen"] = True
    assert root.children[0].data["Seen"] is True


def test_inverse_restores_unedited_tree_exactly() -> None:
    tree = _tree()
    original = copy.deepcopy(tree.to_json())
    store = EditorStateStore()
    t = _transformer(store)

    t.apply_after_read(tree)
    assert tree.to_json() != original

    clone = copy.deepcopy(tree)
    t.apply_before_write(clone)
    assert json.dumps(clone.to_json()) == json.dumps(original)


def test_inverse_does_not_touch_store() -> None:
    tree = _tree()
    store = EditorStateStore()
    t = _transformer(store)
    t.apply_after_read(tree)
    snapshot = [s.to_json() for s in store]

    t.apply_before_write(copy.deepcopy(tree))
    assert [s.to_json() for s in store] == snapshot


def test_theme_value_wins_over_template_default() -> None:
    tree = _tree()
    store = EditorStateStore()
    t = _transformer(store)
    button = tree.root.children[0]

    assert t.default_for(button, "Fill") == "RGBA(0, 120, 212, 1)"
    assert t.default_for(button, "Text") == '"Button"'
    assert t.default_for(tree.root, "Fill") == "RGBA(255, 255, 255, 1)"
    assert t.default_for(button, "Nope") is None


def test_edited_and_added_rules_survive_inverse() -> None:
    tree = _tree()
    store = EditorStateStore()
    t = _transformer(store)
    t.apply_after_read(tree)

    button = tree.root.children[0]
    button.rules = [
        {"Property": "Fill", "Category": "Design", "InvariantScript": "Color.Red"},
        {"Property": "X", "Category": "Design", "InvariantScript": "40"},
        {"Property": "Y", "Category": "Design", "InvariantScript": "10"},
    ]
    clone = copy.deepcopy(tree)
    t.apply_before_write(clone)

    rules = clone.root.children[0].rules
    assert [r["Property"] for r in rules] == ["Text", "Fill", "X", "Y"]
    assert rules[1]["InvariantScript"] == "Color.Red"


def test_existing_state_is_kept_and_extended() -> None:
    store = EditorStateStore()
    t = _transformer(store)
    tree = _tree()
    t.apply_after_read(tree)
    key_order = list(store.get("Button1").key_order)

    # A second forward pass over the stripped form changes nothing.
    t.apply_after_read(tree)
    state = store.get("Button1")
    assert state.key_order == key_order
    assert set(state.default_rules) == {"Text", "Fill"}
    assert state.editor_properties == {"ControlUniqueId": "2", "Index": 0}


def test_theme_lookup_resolves_palette_tokens() -> None:
    theme = Theme(make_themes())
    assert theme.try_lookup("defaultButtonStyle", "Fill") == "RGBA(0, 120, 212, 1)"
    assert theme.try_lookup("defaultButtonStyle", "Text") is None
    assert theme.try_lookup("missingStyle", "Fill") is None
    assert theme.try_lookup(None, "Fill") is None
    assert theme.style_names == ["defaultButtonStyle"]
    assert Theme(None).try_lookup("defaultButtonStyle", "Fill") is None


def _tree_with_rules(screen_rules: list[dict], button_rules: list[dict] | None = None) -> ControlTree:
    obj = make_screen_tree()
    obj["TopParent"]["Rules"] = screen_rules
    if button_rules is not None:
        obj["TopParent"]["Children"][0]["Rules"] = button_rules
    raw = json.dumps(obj).encode("utf-8")
    return ControlTree.from_bytes(raw, kind="control", origin="msapp", where="Controls/1.json")


def _roundtrip(tree: ControlTree) -> tuple[dict, dict, EditorStateStore]:
    original = copy.deepcopy(tree.to_json())
    store = EditorStateStore()
    t = _transformer(store)
    t.apply_after_read(tree)
    clone = copy.deepcopy(tree)
    t.apply_before_write(clone)
    return original, clone.to_json(), store


def test_inverse_keeps_repeated_properties_in_place() -> None:
    tree = _tree_with_rules(
        [
            {"Property": "OnVisible", "InvariantScript": "a"},
            {"Property": "OnVisible", "InvariantScript": "b"},
            {"Property": "Width", "InvariantScript": "c"},
        ]
    )
    original, restored, store = _roundtrip(tree)
    assert restored == original
    assert store.get("Screen1").rule_order == ["OnVisible", "OnVisible#2", "Width"]


def test_inverse_keeps_rules_without_property_in_place() -> None:
    tree = _tree_with_rules(
        [
            {"Category": "Behavior", "InvariantScript": "z"},
            {"Property": "Width", "InvariantScript": "Parent.Width"},
        ]
    )
    original, restored, store = _roundtrip(tree)
    assert restored == original
    assert store.get("Screen1").rule_order == ["#0", "Width"]


def test_inverse_restores_stripped_first_of_repeated_property() -> None:
    tree = _tree_with_rules(
        [{"Property": "OnVisible", "InvariantScript": "Set(x, 1)"}],
        button_rules=[
            {"Property": "X", "InvariantScript": "40"},
            {"Property": "Text", "InvariantScript": '"Button"'},
            {"Category": "Design", "InvariantScript": "note"},
            {"Property": "Text", "InvariantScript": '"Other"'},
        ],
    )
    button = tree.root.children[0]
    original, restored, store = _roundtrip(tree)

    assert [r["InvariantScript"] for r in button.rules] == ["40", "note", '"Other"']
    assert set(store.get("Button1").default_rules) == {"Text"}
    assert restored == original


def test_rule_edited_to_default_in_source_form_keeps_its_slot() -> None:
    tree = _tree_with_rules(
        [{"Property": "OnVisible", "InvariantScript": "Set(x, 1)"}],
        button_rules=[
            {"Property": "Text", "InvariantScript": '"Hello"'},
            {"Property": "X", "InvariantScript": "40"},
        ],
    )
    store = EditorStateStore()
    t = _transformer(store)
    t.apply_after_read(tree)

    button = tree.root.children[0]
    button.rules[0]["InvariantScript"] = '"Button"'
    t.apply_after_read(tree)
    assert [r["Property"] for r in button.rules] == ["X"]

    clone = copy.deepcopy(tree)
    t.apply_before_write(clone)
    assert [r["Property"] for r in clone.root.children[0].rules] == ["Text", "X"]
