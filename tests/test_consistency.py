from __future__ import annotations

from pathlib import Path

from canvasdoc import ErrorKind, load_from_msapp
from canvasdoc.core.consistency import read_connections

from conftest import connection_refs, make_app_entries, make_minimal_entries, write_msapp


def _load(tmp_path: Path, entries: dict) -> tuple:
    return load_from_msapp(write_msapp(tmp_path / "app.msapp", entries))


def test_minimal_app_with_matching_data_source_loads(tmp_path: Path) -> None:
    doc, errors = _load(tmp_path, make_minimal_entries([{"Name": "ds1", "ApiId": "sql", "TableName": "g1"}]))

    assert not errors.has_errors
    assert doc is not None
    assert [ds.name for ds in doc.data_sources] == ["ds1"]
    assert doc.connections["c1"].data_sources == ("ds1",)


def test_connection_without_data_source_is_exactly_one_violation(tmp_path: Path) -> None:
    doc, errors = _load(tmp_path, make_minimal_entries(None))

    assert doc is None
    assert errors.kinds() == [ErrorKind.CONSISTENCY_VIOLATION]
    assert "ds1" in errors.errors[0].message


def test_missing_header_is_mandatory_shard_error(tmp_path: Path) -> None:
    doc, errors = _load(tmp_path, make_app_entries(**{"Header.json": None}))

    assert doc is None
    assert errors.kinds() == [ErrorKind.MISSING_MANDATORY_SHARD]
    assert errors.errors[0].message == "Missing header file"


def test_missing_properties_is_mandatory_shard_error(tmp_path: Path) -> None:
    doc, errors = _load(tmp_path, make_app_entries(**{"Properties.json": None}))

    assert doc is None
    assert errors.kinds() == [ErrorKind.MISSING_MANDATORY_SHARD]


def test_connection_key_must_equal_its_id(tmp_path: Path) -> None:
    entries = make_minimal_entries([{"Name": "ds1", "ApiId": "sql", "TableName": "g1"}])
    entries["Properties.json"]["LocalConnectionReferences"] = connection_refs(
        {"c1": {"id": "c2", "dataSources": ["ds1"]}}
    )
    doc, errors = _load(tmp_path, entries)

    assert doc is None
    assert errors.kinds() == [ErrorKind.CONSISTENCY_VIOLATION]
    assert "Id mismatch" in errors.errors[0].message


def test_duplicate_connection_key_is_violation(tmp_path: Path) -> None:
    entries = make_minimal_entries([{"Name": "ds1", "ApiId": "sql", "TableName": "g1"}])
    entries["Properties.json"]["LocalConnectionReferences"] = (
        '{"c1":{"id":"c1","dataSources":["ds1"]},"c1":{"id":"c1","dataSources":["ds1"]}}'
    )
    doc, errors = _load(tmp_path, entries)

    assert doc is None
    assert errors.kinds() == [ErrorKind.CONSISTENCY_VIOLATION]


def test_duplicate_keys_inside_a_connection_are_not_connection_duplicates() -> None:
    text = '{"c1":{"id":"c1","dataSources":["ds1"],"x":1,"x":2}}'
    conns = read_connections({"LocalConnectionReferences": text})
    assert list(conns) == ["c1"]


def test_no_connection_text_means_no_connections() -> None:
    assert read_connections({"DocumentAppType": "Phone"}) == {}
    assert read_connections({"LocalConnectionReferences": ""}) == {}


def test_invalid_json_in_recognized_entry_is_single_internal_error(tmp_path: Path) -> None:
    doc, errors = _load(tmp_path, make_app_entries(**{"References/Themes.json": b"{not json"}))

    assert doc is None
    assert errors.kinds() == [ErrorKind.INTERNAL_ERROR]
