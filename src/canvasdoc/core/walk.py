"""Pre-order traversal over control trees."""

from __future__ import annotations

from typing import Iterator

from canvasdoc.core.model import ControlNode


def walk_all(node: ControlNode) -> Iterator[ControlNode]:
    """Yield `node` and all descendants, parents before children.

    Lazy and single-pass; nodes are yielded by reference, not copied.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        # reversed so the first child is visited first
        stack.extend(reversed(current.children))
