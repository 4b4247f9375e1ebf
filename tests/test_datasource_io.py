from __future__ import annotations

import json
from pathlib import Path

import pytest

from canvasdoc.io import DataSourceValidationError, read_datasource_json

from conftest import make_data_source


def _write(tmp_path: Path, obj: object) -> Path:
    p = tmp_path / "candidate.json"
    p.write_text(json.dumps(obj), encoding="utf-8")
    return p


def test_reads_valid_candidate(tmp_path: Path) -> None:
    entry = read_datasource_json(_write(tmp_path, make_data_source(table="T9", display_name="nine")))
    assert entry.name == "Accounts"
    assert entry.table_name == "T9"
    assert entry.display_name == "nine"
    assert entry.to_json()["Type"] == "ConnectedDataSourceInfo"


@pytest.mark.parametrize(
    "obj,fragment",
    [
        ([], "expected JSON object"),
        ({"ApiId": "x", "TableName": "t"}, "missing required key 'Name'"),
        ({"Name": "A", "ApiId": "x", "TableName": " "}, "TableName: must be a non-empty string"),
        ({"Name": "A", "ApiId": 3, "TableName": "t"}, "ApiId: expected str"),
        ({"Name": "A", "ApiId": "x", "TableName": "t", "DataEntityMetadataJson": {"t": 1}}, "expected str"),
    ],
)
def test_rejects_bad_shapes(tmp_path: Path, obj: object, fragment: str) -> None:
    with pytest.raises(DataSourceValidationError) as exc:
        read_datasource_json(_write(tmp_path, obj))
    assert fragment in str(exc.value)


def test_rejects_invalid_json(tmp_path: Path) -> None:
    p = tmp_path / "candidate.json"
    p.write_text("{", encoding="utf-8")
    with pytest.raises(DataSourceValidationError):
        read_datasource_json(p)
