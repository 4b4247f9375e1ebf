"""Control-tree transforms applied after load and before packed save."""

from __future__ import annotations

from .defaults import SourceTransformer
from .editor_state import EDITOR_ONLY_KEYS, ControlState, EditorStateStore

__all__ = [
    "EDITOR_ONLY_KEYS",
    "ControlState",
    "EditorStateStore",
    "SourceTransformer",
]
