"""Source-tree I/O (unpacked, human-editable app format).

- Split shards into one file per data-source name and per top-level control
- Preserve unknown packed entries under `Other/`
- Write/read `manifest.json` with sha256 hashes for reproducibility
"""

from __future__ import annotations

from .manifest import build_manifest, read_manifest, sha256_bytes, sha256_file, write_manifest
from .paths import escape_filename, unescape_filename
from .source import build_source_files, create_from_sources, read_source_tree, write_source_tree

__all__ = [
    "build_manifest",
    "build_source_files",
    "create_from_sources",
    "escape_filename",
    "read_manifest",
    "read_source_tree",
    "sha256_bytes",
    "sha256_file",
    "unescape_filename",
    "write_manifest",
    "write_source_tree",
]
