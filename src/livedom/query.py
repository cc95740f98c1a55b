"""Position queries over a node tree.

``node_at`` maps a cursor position to the element it belongs to (used for
live highlighting and as the default marked-span lookup). ``enclosing_node``
finds the narrowest element that can be reparsed on its own after an edit.

Both only descend into elements; text runs belong to their parent.

"""

from __future__ import annotations

from livedom.deltas import EditDelta
from livedom.ids import PositionLookup
from livedom.location import Position
from livedom.nodes import Node, Snapshot


def node_at(root: Node, pos: Position, prefer_parent: bool = False) -> Node | None:
    """Return the innermost element whose span contains ``pos``.

    A position exactly on an element's start belongs to the enclosing
    element, since the ``<`` is where the parent's content ends. With
    ``prefer_parent``, a position exactly on an element's end also resolves
    to the enclosing element.

    Returns:
        The element, or None when ``pos`` lies outside ``root``.

    """
    if pos < root.start_pos or pos > root.end_pos:
        return None

    node = root
    while True:
        for child in node.children:
            if not child.is_element():
                continue
            if pos < child.end_pos:
                if pos > child.start_pos:
                    node = child
                    break
                return node
            if prefer_parent and pos == child.end_pos:
                return node
        else:
            return node


def tag_id_at(root: Node, pos: Position) -> int | None:
    """Tag id of the element at ``pos``, or None if there is none."""
    node = node_at(root, pos)
    return node.tag_id if node is not None else None


def enclosing_node(root: Node, start: Position, end: Position) -> Node | None:
    """Return the innermost element strictly containing ``start``..``end``.

    Strict containment means an edit touching an element's boundary
    resolves to that element's parent, which keeps the reparsed region wide
    enough to absorb the edit.

    Returns:
        The element, or None when even ``root`` does not strictly contain
        the range.

    """
    if not (root.start_pos < start and end < root.end_pos):
        return None

    node = root
    while True:
        for child in node.children:
            if not child.is_element():
                continue
            if child.start_pos < start and end < child.end_pos:
                node = child
                break
            if child.start_pos >= end:
                return node
        else:
            return node


def edit_enclosing_node(root: Node, delta: EditDelta) -> Node | None:
    """Enclosing element for an edit whose positions were already shifted.

    After shifting, an insertion occupies ``delta.start..delta.end`` and a
    removal has collapsed to ``delta.start``.
    """
    end = delta.end if delta.is_insert else delta.start
    return enclosing_node(root, delta.start, end)


def tree_lookup(snapshot: Snapshot) -> PositionLookup:
    """Marked-span lookup answered from a tree's current boundaries.

    Stands in for an external marker store: since the position tracker
    keeps the tree's boundaries in step with the text, the tree itself
    knows which element marks each position.
    """

    def lookup(pos: Position, prefer_parent: bool) -> int | None:
        node = node_at(snapshot.root, pos, prefer_parent)
        return node.tag_id if node is not None else None

    return lookup
