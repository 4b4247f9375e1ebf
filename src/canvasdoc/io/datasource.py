"""Candidate data-source JSON I/O.

Reads the JSON file handed to `canvasdoc update-datasource`: one data-source
object in the `References/DataSources.json` entry shape, e.g.

    {
      "Name": "Accounts",
      "ApiId": "/providers/microsoft.powerapps/apis/shared_sql",
      "TableName": "c1d6f0e8-...",
      "DatasetName": "default.cds",
      "DataEntityMetadataJson": {"c1d6f0e8-...": "{\"displayName\": \"Accounts\"}"}
    }

Policy: validation-only. `Name`, `ApiId` and `TableName` are required,
non-empty strings; anything else is passed through.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from canvasdoc.core.model import DataSourceEntry

_MISSING = object()


@dataclass(frozen=True)
class DataSourceValidationError(ValueError):
    """Deterministic validation error for candidate data-source JSON."""

    message: str

    def __str__(self) -> str:
        return self.message


def _require_dict(value: Any, *, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise DataSourceValidationError(f"{where}: expected JSON object, got {type(value).__name__}")
    return value


def _require_str(obj: dict[str, Any], key: str, *, where: str) -> str:
    v = obj.get(key, _MISSING)
    if v is _MISSING:
        raise DataSourceValidationError(f"{where}: missing required key '{key}'")
    if not isinstance(v, str):
        raise DataSourceValidationError(f"{where}.{key}: expected str, got {type(v).__name__}")
    if not v.strip():
        raise DataSourceValidationError(f"{where}.{key}: must be a non-empty string")
    return v


def read_datasource_json(path: str | Path) -> DataSourceEntry:
    """Read and validate one candidate data source."""
    p = Path(path)
    where = p.name
    try:
        with p.open("r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise DataSourceValidationError(f"{where}: invalid JSON ({e})") from e

    obj = _require_dict(data, where=where)
    for key in ("Name", "ApiId", "TableName"):
        _require_str(obj, key, where=where)

    try:
        return DataSourceEntry.from_json(obj, where=where)
    except ValueError as e:
        raise DataSourceValidationError(str(e)) from e


__all__ = [
    "DataSourceValidationError",
    "read_datasource_json",
]
