from __future__ import annotations

from pathlib import Path

import pandas as pd

from canvasdoc.inventory import (
    build_inventory,
    compare_inventories,
    inventory_from_msapp,
    verify_roundtrip,
)

from conftest import make_app_entries, write_msapp


def test_inventory_columns_and_kinds(tmp_path: Path) -> None:
    df = inventory_from_msapp(write_msapp(tmp_path / "app.msapp", make_app_entries()))

    assert list(df.columns) == ["path", "kind", "size", "sha256"]
    assert list(df["path"]) == sorted(df["path"])
    kinds = dict(zip(df["path"], df["kind"]))
    assert kinds["Controls/1.json"] == "control"
    assert kinds["Assets/Images/logo.png"] == "unknown"
    assert kinds["References/DataSources.json"] == "data_sources"


def test_json_digest_ignores_formatting_and_key_order() -> None:
    left = build_inventory({"Header.json": b'{"a":1,"b":2}'})
    right = build_inventory({"Header.json": b'{\n  "b": 2,\n  "a": 1\n}\n'})
    assert left.loc[0, "sha256"] == right.loc[0, "sha256"]
    assert left.loc[0, "size"] != right.loc[0, "size"]


def test_compare_reports_each_kind_of_difference() -> None:
    left = build_inventory({"Header.json": b"{}", "a.bin": b"1", "gone.bin": b"x"})
    right = build_inventory({"Header.json": b"{ }", "a.bin": b"2", "new.bin": b"y"})

    diff = compare_inventories(left, right)
    assert list(diff.columns) == ["path", "status", "left_sha256", "right_sha256"]
    assert dict(zip(diff["path"], diff["status"])) == {
        "a.bin": "changed",
        "gone.bin": "left_only",
        "new.bin": "right_only",
    }


def test_compare_identical_is_empty() -> None:
    inv = build_inventory({"Header.json": b"{}"})
    diff = compare_inventories(inv, inv.copy())
    assert diff.empty
    pd.testing.assert_index_equal(diff.columns, pd.Index(["path", "status", "left_sha256", "right_sha256"]))


def test_verify_roundtrip_of_fixture_app(tmp_path: Path) -> None:
    msapp = write_msapp(tmp_path / "app.msapp", make_app_entries())
    diff, errors = verify_roundtrip(msapp, tmp_path / "work")

    assert not errors.has_errors
    assert diff is not None and diff.empty
    assert (tmp_path / "work" / "manifest.json").is_file()


def test_verify_roundtrip_reports_load_failure(tmp_path: Path) -> None:
    msapp = write_msapp(tmp_path / "app.msapp", make_app_entries(**{"Header.json": None}))
    diff, errors = verify_roundtrip(msapp, tmp_path / "work")

    assert diff is None
    assert errors.has_errors
