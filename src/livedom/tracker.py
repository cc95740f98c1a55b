"""Position tracker: shift node boundaries for a text edit without reparsing.

Runs before classification so that the previous tree's coordinates already
describe the edited text. Deltas must be applied in the order they happened;
applying them out of order silently corrupts coordinates.

For an insertion of the range ``[S, E)``, a boundary ``p >= S`` on row
``S.row`` moves to ``(E.row, E.column + p.column - S.column)`` and a boundary
on a later row moves down by ``E.row - S.row``. A removal of ``[S, E)`` is
the inverse, anchored at ``E``; boundaries strictly inside the removed range
collapse to ``S``.

Only subtrees the edit can reach are visited: a subtree that ends before
the anchor is skipped, and when the row count does not change, subtrees
starting on a later row are skipped along with their following siblings.

"""

from __future__ import annotations

from livedom.deltas import EditDelta
from livedom.location import Position
from livedom.nodes import Node


def shift_position(pos: Position, delta: EditDelta) -> Position:
    """Return where ``pos`` ends up after ``delta``."""
    start, end = delta.start, delta.end
    if delta.is_insert:
        if pos < start:
            return pos
        if pos.row == start.row:
            return Position(end.row, end.column + pos.column - start.column)
        return Position(pos.row + end.row - start.row, pos.column)

    if pos <= start:
        return pos
    if pos < end:
        return start
    if pos.row == end.row:
        return Position(start.row, start.column + pos.column - end.column)
    return Position(pos.row - (end.row - start.row), pos.column)


def shift_positions(root: Node, delta: EditDelta) -> int:
    """Shift every boundary in ``root``'s tree affected by ``delta``, in place.

    Never changes tag ids or the node count.

    Returns:
        Number of nodes visited.

    """
    # Boundaries before the anchor never move.
    anchor = delta.start if delta.is_insert else delta.end
    lower = delta.start
    same_rows = delta.start.row == delta.end.row
    visited = 0

    stack = [root]
    while stack:
        node = stack.pop()
        if node.end_pos < lower:
            continue
        if same_rows and node.start_pos.row > anchor.row:
            continue
        visited += 1
        node.start_pos = shift_position(node.start_pos, delta)
        node.end_pos = shift_position(node.end_pos, delta)

        children = node.children
        for i in range(len(children) - 1, -1, -1):
            child = children[i]
            if same_rows and child.start_pos.row > anchor.row:
                continue
            if child.end_pos < lower:
                break
            stack.append(child)

    return visited
