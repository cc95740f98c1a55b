"""Structural tree nodes for livedom.

Unlike immutable AST nodes, these nodes are mutable: the position tracker
shifts their boundaries in place and the updater swaps subtrees in place so
that unaffected nodes keep their identity across edits.

Ownership flows one way, from parent to ``children``. ``parent`` is a
non-owning lookup link; nothing relies on it to keep a node alive.

Node Kinds:
Node
├── ELEMENT (tag, attributes, children)
└── TEXT (content)

Identifiers:
Element ids come from an identity policy (see ``livedom.ids``) and are
always >= 1; the synthetic document root uses 0. Text ids are negative and
derived from the text run's position among its siblings, see
``text_node_id``.

"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from livedom.errors import SubtreeSwapError
from livedom.location import ORIGIN, Position
from livedom.utils.hashing import hash_parts

DOCUMENT_TAG = "#document"
DOCUMENT_ID = 0

SIGNATURE_LENGTH = 16


class NodeKind(Enum):
    ELEMENT = "element"
    TEXT = "text"


@dataclass(slots=True, eq=False)
class Node:
    """An element or a text run.

    Nodes compare by identity. Use ``signature`` to compare content.

    Attributes:
        kind: Element or text
        tag_id: Stable identifier, unique within one snapshot
        tag: Lower-cased tag name ("" for text)
        attributes: Attribute name to value (elements only)
        content: Decoded text (text only)
        start_pos: Start of the node's span
        end_pos: End of the node's span, closing tag included
        children: Child nodes in document order
        parent: Enclosing element (non-owning)
        implicit_end: True if the element was closed by anything other than
            its own end tag
        attribute_signature: Fingerprint of ``attributes``
        child_signature: Fingerprint of the ordered child identities
        signature: Fingerprint of the whole subtree, identities included

    """

    kind: NodeKind
    tag_id: int = 0
    tag: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    content: str = ""
    start_pos: Position = ORIGIN
    end_pos: Position = ORIGIN
    children: list[Node] = field(default_factory=list)
    parent: Node | None = field(default=None, repr=False)
    implicit_end: bool = field(default=False, repr=False)
    attribute_signature: str = field(default="", repr=False)
    child_signature: str = field(default="", repr=False)
    signature: str = field(default="", repr=False)

    @classmethod
    def element(
        cls,
        tag: str,
        attributes: dict[str, str] | None = None,
        *,
        tag_id: int = 0,
        start_pos: Position = ORIGIN,
        end_pos: Position = ORIGIN,
    ) -> Node:
        return cls(
            NodeKind.ELEMENT,
            tag_id=tag_id,
            tag=tag,
            attributes=dict(attributes or {}),
            start_pos=start_pos,
            end_pos=end_pos,
        )

    @classmethod
    def text(
        cls,
        content: str,
        *,
        tag_id: int = 0,
        start_pos: Position = ORIGIN,
        end_pos: Position = ORIGIN,
    ) -> Node:
        return cls(
            NodeKind.TEXT,
            tag_id=tag_id,
            content=content,
            start_pos=start_pos,
            end_pos=end_pos,
        )

    def is_element(self) -> bool:
        return self.kind is NodeKind.ELEMENT

    def is_text(self) -> bool:
        return self.kind is NodeKind.TEXT

    @property
    def is_synthetic(self) -> bool:
        """True for the wrapper root of a document with several top-level nodes."""
        return self.tag == DOCUMENT_TAG

    def append(self, child: Node) -> None:
        child.parent = self
        self.children.append(child)

    def update(self, length: int = SIGNATURE_LENGTH) -> None:
        """Recompute this node's signatures from its current content.

        Children must already be up to date; call bottom-up.
        """
        if self.kind is NodeKind.TEXT:
            self.signature = hash_parts(("text", self.content), length)
            return

        attr_parts: list[str] = []
        for name in sorted(self.attributes):
            attr_parts.append(name)
            attr_parts.append(self.attributes[name])
        self.attribute_signature = hash_parts(attr_parts, length)

        child_parts: list[str] = []
        subtree_parts: list[str] = [self.tag, self.attribute_signature]
        for child in self.children:
            if child.kind is NodeKind.ELEMENT:
                child_parts.append(str(child.tag_id))
                subtree_parts.append(str(child.tag_id))
                subtree_parts.append(child.attribute_signature)
            else:
                child_parts.append(f"{child.tag_id}:{child.signature}")
                subtree_parts.append(str(child.tag_id))
            subtree_parts.append(child.signature)
        self.child_signature = hash_parts(child_parts, length)
        self.signature = hash_parts(subtree_parts, length)

    def update_ancestors(self, length: int = SIGNATURE_LENGTH) -> None:
        """Recompute signatures from this node's parent up to the root."""
        ancestor = self.parent
        while ancestor is not None:
            ancestor.update(length)
            ancestor = ancestor.parent

    def has_ancestor_with_id(self, tag_id: int) -> bool:
        ancestor = self.parent
        while ancestor is not None and ancestor.tag_id != tag_id:
            ancestor = ancestor.parent
        return ancestor is not None

    def __repr__(self) -> str:
        """Compact repr for debugging."""
        if self.kind is NodeKind.TEXT:
            content = self.content
            if len(content) > 20:
                content = content[:17] + "..."
            return f"Text({self.tag_id}, {content!r}, {self.start_pos}-{self.end_pos})"
        return (
            f"Element({self.tag_id}, <{self.tag}>, {self.start_pos}-{self.end_pos}, "
            f"children={len(self.children)})"
        )


def text_node_id(parent: Node | None, previous_sibling: Node | None) -> int:
    """Derive a text run's id from where it sits among its siblings.

    The run that follows element ``E`` gets ``-(2 * E)``; the run that opens
    parent ``P`` gets ``-(2 * P + 1)``; a run with neither gets ``-1``.
    Adjacent runs are always merged, so every anchor owns at most one run
    and the ids are unique within a tree.
    """
    if previous_sibling is not None and previous_sibling.kind is NodeKind.ELEMENT:
        return -(2 * previous_sibling.tag_id)
    if parent is not None:
        return -(2 * parent.tag_id + 1)
    return -1


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and its descendants in document (pre-)order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if current.children:
            stack.extend(reversed(current.children))


def build_node_map(root: Node) -> dict[int, Node]:
    """Map every tag id reachable from ``root`` to its node."""
    return {node.tag_id: node for node in walk(root)}


class Snapshot:
    """A root node plus the map of every node reachable from it.

    The map is kept exactly in step with the tree: ``replace_subtree``
    patches it, and ``from_root`` rebuilds it.

    """

    __slots__ = ("node_map", "root")

    def __init__(self, root: Node, node_map: dict[int, Node]) -> None:
        self.root = root
        self.node_map = node_map

    @classmethod
    def from_root(cls, root: Node) -> Snapshot:
        return cls(root, build_node_map(root))

    def get(self, tag_id: int) -> Node | None:
        return self.node_map.get(tag_id)

    def __contains__(self, tag_id: object) -> bool:
        return tag_id in self.node_map

    def __len__(self) -> int:
        return len(self.node_map)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.node_map.values())

    def max_id(self) -> int:
        """Largest element id in the snapshot (0 when there is none)."""
        return max((tag_id for tag_id in self.node_map if tag_id > 0), default=0)

    def replace_subtree(self, old: Node, new: Node) -> int:
        """Swap ``new`` into the tree in place of ``old``.

        Validates before mutating, so on failure the tree is untouched.
        The detached ``old`` keeps its children but loses its parent link.
        Signatures and ``node_map`` are the caller's responsibility; see
        ``livedom.updater``.

        Returns:
            Index of the swapped child within its parent.

        Raises:
            SubtreeSwapError: If ``old`` has no parent or is not among its
                parent's children.

        """
        parent = old.parent
        if parent is None:
            raise SubtreeSwapError(old.tag_id, "subtree has no parent")
        index = next((i for i, child in enumerate(parent.children) if child is old), -1)
        if index == -1:
            raise SubtreeSwapError(old.tag_id, "subtree not found in parent's children")

        old.parent = None
        new.parent = parent
        parent.children[index] = new
        return index

    def __repr__(self) -> str:
        return f"Snapshot(root={self.root!r}, nodes={len(self.node_map)})"
