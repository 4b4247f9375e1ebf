from __future__ import annotations

import copy
import json
from pathlib import Path

from canvasdoc import load_from_msapp
from canvasdoc.codecs.msapp import build_archive_entries, classify_entry

from conftest import PNG_BYTES, make_app_entries, read_zip_entries, write_msapp


def test_classify_entry_is_case_insensitive() -> None:
    assert classify_entry("header.json") == "header"
    assert classify_entry("references/DATASOURCES.json") == "data_sources"
    assert classify_entry("Controls/12.json") == "control"
    assert classify_entry("Components/3.json") == "component"
    assert classify_entry("Controls/nested/1.json") == "unknown"
    assert classify_entry("Assets/Images/logo.png") == "unknown"


def test_load_then_save_is_byte_identical_per_entry(tmp_path: Path) -> None:
    src = write_msapp(tmp_path / "in.msapp", make_app_entries())
    doc, errors = load_from_msapp(src)
    assert not errors.has_errors

    out = tmp_path / "out.msapp"
    errors = doc.save_to_msapp(out)
    assert not errors.has_errors

    before = read_zip_entries(src)
    after = read_zip_entries(out)
    assert list(after) == list(before)
    assert after == before


def test_unknown_entry_keeps_bytes_and_relative_position(tmp_path: Path) -> None:
    entries = make_app_entries()
    doc, errors = load_from_msapp(write_msapp(tmp_path / "in.msapp", entries))
    assert doc.unknown_files["Assets/Images/logo.png"].data == PNG_BYTES
    assert errors.warnings

    written = build_archive_entries(doc)
    names = list(written)
    assert names.index("Assets/Images/logo.png") == list(entries).index("Assets/Images/logo.png")
    assert written["Assets/Images/logo.png"] == PNG_BYTES


def test_load_strips_defaults_and_editor_keys_in_memory(tmp_path: Path) -> None:
    doc, _ = load_from_msapp(write_msapp(tmp_path / "in.msapp", make_app_entries()))
    screen = doc.control_trees["Screen1"].root
    button = screen.children[0]

    assert [r["Property"] for r in screen.rules] == ["OnVisible"]
    assert [r["Property"] for r in button.rules] == ["X"]
    assert "ControlUniqueId" not in button.data
    assert doc.editor_state.get("Button1").editor_properties["ControlUniqueId"] == "2"
    assert doc.template_store.is_resolved
    assert "button" in doc.template_store
    assert "screen" in doc.template_store


def test_save_does_not_mutate_document(tmp_path: Path) -> None:
    doc, _ = load_from_msapp(write_msapp(tmp_path / "in.msapp", make_app_entries()))
    trees_before = {name: copy.deepcopy(t.to_json()) for name, t in doc.control_trees.items()}
    state_before = [s.to_json() for s in doc.editor_state]
    props_before = copy.deepcopy(doc.properties.data)
    entropy_before = doc.entropy.to_json()

    doc.save_to_msapp(tmp_path / "out.msapp")
    doc.save_to_sources(tmp_path / "src")

    assert {name: t.to_json() for name, t in doc.control_trees.items()} == trees_before
    assert [s.to_json() for s in doc.editor_state] == state_before
    assert doc.properties.data == props_before
    assert doc.entropy.to_json() == entropy_before


def test_edited_rule_is_written_and_defaults_come_back(tmp_path: Path) -> None:
    doc, _ = load_from_msapp(write_msapp(tmp_path / "in.msapp", make_app_entries()))
    button = doc.control_trees["Screen1"].root.children[0]
    button.rules[0]["InvariantScript"] = "80"

    written = build_archive_entries(doc)
    tree = json.loads(written["Controls/1.json"])
    rules = tree["TopParent"]["Children"][0]["Rules"]

    assert [r["Property"] for r in rules] == ["Text", "Fill", "X"]
    assert rules[2]["InvariantScript"] == "80"
    assert tree["TopParent"]["Children"][0]["ControlUniqueId"] == "2"
    assert list(tree["TopParent"]) == list(make_app_entries()["Controls/1.json"]["TopParent"])


def test_duplicate_top_level_control_is_violation(tmp_path: Path) -> None:
    entries = make_app_entries()
    entries["Controls/9.json"] = copy.deepcopy(entries["Controls/1.json"])
    doc, errors = load_from_msapp(write_msapp(tmp_path / "in.msapp", entries))

    assert doc is None
    assert [e.kind.value for e in errors] == ["ConsistencyViolation"]


def test_backslash_entry_names_are_written_back_as_spelled(tmp_path: Path) -> None:
    entries = make_app_entries()
    renamed = {name.replace("/", "\\"): value for name, value in entries.items()}
    src = write_msapp(tmp_path / "in.msapp", renamed)
    doc, errors = load_from_msapp(src)
    assert not errors.has_errors

    assert "Screen1" in doc.control_trees
    assert doc.data_sources[0].name == "Accounts"
    assert doc.unknown_files["Assets\\Images\\logo.png"].data == PNG_BYTES
    assert "References\\DataSources.json" in doc.entropy.archive_order

    out = tmp_path / "out.msapp"
    assert not doc.save_to_msapp(out).has_errors
    before = read_zip_entries(src)
    after = read_zip_entries(out)
    assert list(after) == list(before)
    assert after == before
    assert "Controls\\1.json" in after


def test_classify_entry_reads_backslash_as_separator() -> None:
    assert classify_entry("References\\DataSources.json") == "data_sources"
    assert classify_entry("Controls\\1.json") == "control"
    assert classify_entry("Assets\\Images\\logo.png") == "unknown"
