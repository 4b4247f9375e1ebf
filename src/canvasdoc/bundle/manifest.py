"""Source-tree manifest utilities.

Small and dependency-light to avoid import cycles. It provides:
- sha256 hashing helpers
- manifest.json read/write
- a manifest builder listing every generated file with its sha256

The manifest carries no timestamp, so unpacking the same app twice produces
identical trees.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

MANIFEST_NAME = "manifest.json"
SCHEMA_VERSION = "canvasdoc-source-1"


def sha256_bytes(b: bytes) -> str:
    """Return hex-encoded sha256 for bytes."""
    if not isinstance(b, (bytes, bytearray)):
        raise TypeError(f"sha256_bytes: expected bytes, got {type(b).__name__}")
    return hashlib.sha256(bytes(b)).hexdigest()


def sha256_file(path: Path) -> str:
    """Return hex-encoded sha256 for a file on disk."""
    p = Path(path)
    h = hashlib.sha256()
    with p.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def read_manifest(path: Path) -> dict[str, Any]:
    p = Path(path)
    obj = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(obj, dict):
        raise ValueError("manifest.json: expected JSON object")
    files = obj.get("files", [])
    if not isinstance(files, list):
        raise ValueError("manifest.json: files must be an array")
    for i, item in enumerate(files):
        if not isinstance(item, dict) or not isinstance(item.get("path"), str) or not isinstance(item.get("sha256"), str):
            raise ValueError(f"manifest.json: files[{i}] must have string path and sha256")
    return obj


def write_manifest(path: Path, manifest: dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(manifest, indent=2, sort_keys=True) + "\n"
    p.write_text(text, encoding="utf-8")


def build_manifest(
    *,
    name: str | None,
    files: list[dict[str, Any]],
    schema_version: str = SCHEMA_VERSION,
) -> dict[str, Any]:
    """Construct a manifest.

    Fields:
    - schema_version, name (app name, may be null)
    - files: list[{path, sha256}], sorted by path
    """
    if name is not None and not isinstance(name, str):
        raise ValueError("manifest: name must be a string or null")
    if not isinstance(files, list):
        raise TypeError("manifest: files must be a list")

    return {
        "schema_version": schema_version,
        "name": name,
        "files": sorted(files, key=lambda f: f["path"]),
    }


def manifest_paths(manifest: dict[str, Any]) -> list[str]:
    return [item["path"] for item in manifest.get("files", [])]


def find_hash_mismatches(root: Path, manifest: dict[str, Any]) -> list[str]:
    """Return one message per listed file that is missing or whose sha256 differs."""
    root = Path(root)
    problems: list[str] = []
    for item in manifest.get("files", []):
        rel = item["path"]
        expected = item["sha256"]
        p = root / rel
        if not p.is_file():
            problems.append(f"{rel}: listed in manifest but missing")
            continue
        actual = sha256_file(p)
        if actual != expected:
            problems.append(f"sha256 mismatch for {rel}: expected {expected}, got {actual}")
    return problems
