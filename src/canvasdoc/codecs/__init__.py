"""Codecs for the packed app format.

The `.msapp` file is a zip archive of JSON shards plus any number of entries
this tool does not interpret, which are carried through unchanged.
"""

from __future__ import annotations

from .msapp import build_archive_entries, classify_entry, read_archive_entries, read_msapp, write_msapp

__all__ = [
    "build_archive_entries",
    "classify_entry",
    "read_archive_entries",
    "read_msapp",
    "write_msapp",
]
