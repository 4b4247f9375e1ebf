"""Pytest configuration.

This repo follows the `src/` layout. Some environments may invoke a `pytest`
entrypoint from a different Python install than the one used for
`python -m pip install -e ...`, which can cause `import canvasdoc` to fail.

To keep the suite robust, we ensure `src/` is on `sys.path` during tests.
"""

from __future__ import annotations

import copy
import json
import sys
import zipfile
from pathlib import Path
from typing import Any


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    sys.path.insert(0, str(src_dir))


# =============================================================================
# Shared Test Helpers for canvas app fixtures
# =============================================================================

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR-not-really-a-png"

BUTTON_TEMPLATE_XML = (
    '<widget xmlns="http://openajax.org/metadata" name="button" '
    'id="http://microsoft.com/appmagic/button" version="2.2.0">'
    "<properties>"
    '<property name="Text" defaultValue="&quot;Button&quot;"/>'
    '<property name="X" defaultValue="0" phoneDefaultValue="0"/>'
    '<property name="Fill" defaultValue="RGBA(56, 96, 178, 1)"/>'
    "</properties>"
    "</widget>"
)


def dumps_compact(obj: Any) -> bytes:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def connection_refs(connections: dict[str, Any]) -> str:
    return json.dumps(connections, separators=(",", ":"))


def make_screen_tree() -> dict[str, Any]:
    """Screen1 with one button; Fill/Text defaults are strippable."""
    return {
        "TopParent": {
            "Type": "ControlInfo",
            "Name": "Screen1",
            "Template": {"Name": "screen", "Version": "1.0"},
            "ControlUniqueId": "1",
            "Index": 0,
            "StyleName": "defaultScreenStyle",
            "Rules": [
                {"Property": "Fill", "Category": "Design", "InvariantScript": "RGBA(255, 255, 255, 1)"},
                {"Property": "OnVisible", "Category": "Behavior", "InvariantScript": "Set(x, 1)"},
            ],
            "Children": [
                {
                    "Type": "ControlInfo",
                    "Name": "Button1",
                    "Template": {"Name": "button", "Version": "2.2.0"},
                    "ControlUniqueId": "2",
                    "Index": 0,
                    "StyleName": "defaultButtonStyle",
                    "Rules": [
                        {"Property": "Text", "Category": "Data", "InvariantScript": '"Button"'},
                        {"Property": "Fill", "Category": "Design", "InvariantScript": "RGBA(0, 120, 212, 1)"},
                        {"Property": "X", "Category": "Design", "InvariantScript": "40"},
                    ],
                    "Children": [],
                }
            ],
        }
    }


def make_themes() -> dict[str, Any]:
    return {
        "CurrentTheme": "demoTheme",
        "CustomThemes": [
            {
                "name": "demoTheme",
                "palette": [{"name": "Primary", "value": "RGBA(0, 120, 212, 1)"}],
                "styles": [
                    {
                        "name": "defaultButtonStyle",
                        "controlTemplateName": "button",
                        "propertyValuesMap": [{"property": "Fill", "value": "%Palette.Primary%"}],
                    }
                ],
            }
        ],
    }


def make_data_source(
    name: str = "Accounts",
    *,
    api_id: str = "/providers/microsoft.powerapps/apis/shared_sql",
    table: str = "T1",
    display_name: str = "accounts_v1",
    dataset: str = "default",
) -> dict[str, Any]:
    return {
        "Name": name,
        "Type": "ConnectedDataSourceInfo",
        "ApiId": api_id,
        "TableName": table,
        "DatasetName": dataset,
        "DataEntityMetadataJson": {table: json.dumps({"name": table, "displayName": display_name})},
    }


def make_app_entries(**overrides: Any) -> dict[str, Any]:
    """Ordered archive entries of a small but complete app.

    Values are JSON objects (written compact) or raw bytes. Pass an entry name
    with value None to drop it, or a new value to replace it.
    """
    refs = connection_refs(
        {
            "c1": {
                "id": "c1",
                "dataSources": ["Accounts"],
                "dataSets": {"default": {"dataSources": {"Accounts": {"tableName": "T1", "displayName": "accounts_v1"}}}},
            }
        }
    )
    entries: dict[str, Any] = {
        "Header.json": {"DocVersion": "1.0", "MinVersionToLoad": "1.0"},
        "Properties.json": {"Name": "Demo", "DocumentAppType": "Phone", "LocalConnectionReferences": refs},
        "References/DataSources.json": {"DataSources": [make_data_source()]},
        "References/Templates.json": {
            "UsedTemplates": [{"Name": "button", "Version": "2.2.0", "Template": BUTTON_TEMPLATE_XML}]
        },
        "Assets/Images/logo.png": PNG_BYTES,
        "References/Themes.json": make_themes(),
        "Controls/1.json": make_screen_tree(),
        "checksum.json": {"ClientStampedChecksum": "abc123"},
    }
    for name, value in overrides.items():
        if value is None:
            entries.pop(name, None)
        else:
            entries[name] = value
    return copy.deepcopy(entries)


def write_msapp(path: Path, entries: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, value in entries.items():
            zf.writestr(name, value if isinstance(value, bytes) else dumps_compact(value))
    return path


def read_zip_entries(path: Path) -> dict[str, bytes]:
    with zipfile.ZipFile(path, "r") as zf:
        return {info.filename: zf.read(info) for info in zf.infolist() if not info.is_dir()}


def make_minimal_entries(data_sources: list[dict[str, Any]] | None) -> dict[str, Any]:
    """Header {ver:1}, Phone properties with connection c1 -> ds1."""
    entries: dict[str, Any] = {
        "Header.json": {"ver": 1},
        "Properties.json": {
            "DocumentAppType": "Phone",
            "LocalConnectionReferences": connection_refs({"c1": {"id": "c1", "dataSources": ["ds1"]}}),
        },
    }
    if data_sources is not None:
        entries["References/DataSources.json"] = {"DataSources": data_sources}
    return entries
