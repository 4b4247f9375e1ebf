"""File-name escaping for the source tree.

Control and data-source names become file names. Characters outside
`[A-Za-z0-9 _.-]` (and `%` itself) are written as `%XX` per UTF-8 byte, so
any name maps to a portable file name and back.
"""

from __future__ import annotations

import re

_SAFE = re.compile(r"[A-Za-z0-9 _.\-]")
_ESCAPE = re.compile(r"%([0-9A-Fa-f]{2})")


def escape_filename(name: str) -> str:
    if not name:
        raise ValueError("file name: must be a non-empty string")
    out: list[str] = []
    for ch in name:
        if _SAFE.fullmatch(ch):
            out.append(ch)
        else:
            out.extend(f"%{b:02X}" for b in ch.encode("utf-8"))
    escaped = "".join(out)
    # "." and ".." are not usable as file names.
    if escaped in (".", ".."):
        escaped = escaped.replace(".", "%2E")
    return escaped


def unescape_filename(name: str) -> str:
    if "%" not in name:
        return name
    buf = bytearray()
    i = 0
    while i < len(name):
        m = _ESCAPE.match(name, i)
        if m:
            buf.append(int(m.group(1), 16))
            i = m.end()
        else:
            buf.extend(name[i].encode("utf-8"))
            i += 1
    return buf.decode("utf-8")
