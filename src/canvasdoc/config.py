"""Runtime settings read from the environment.

- CANVASDOC_LOG_LEVEL: logging level name for the CLI (default WARNING)
- CANVASDOC_JSON_INDENT: indent of source-tree JSON files (default 2)
- CANVASDOC_VALIDATE_HASHES: check manifest hashes when loading a source
  tree (default false)

CLI options take precedence over these values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

_TRUE = ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name}: expected an integer, got {raw!r}") from e
    if value < 0:
        raise ValueError(f"{name}: must be >= 0")
    return value


def _env_level(name: str, default: str) -> str:
    raw = (os.getenv(name, default) or default).strip().upper()
    if not isinstance(logging.getLevelName(raw), int):
        raise ValueError(f"{name}: unknown logging level {raw!r}")
    return raw


@dataclass(frozen=True)
class Settings:
    log_level: str = "WARNING"
    json_indent: int = 2
    validate_hashes: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=_env_level("CANVASDOC_LOG_LEVEL", "WARNING"),
            json_indent=_env_int("CANVASDOC_JSON_INDENT", 2),
            validate_hashes=(os.getenv("CANVASDOC_VALIDATE_HASHES", "") or "").strip().lower() in _TRUE,
        )
