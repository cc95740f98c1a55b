"""Tree differ: edit script between two snapshots.

Compares two snapshots by tag id and produces the ordered edits that turn a
tree shaped like ``old`` into one shaped like ``new``. Edits speak only of
tag ids, tag names, attributes and text; never of source offsets.

Matching:
    - same id in both trees: the same logical node; attributes and children
      are compared;
    - id only in ``old``: deleted;
    - id only in ``new``: inserted;
    - same id with a different kind or tag name: deleted, then reinserted.

The document itself is the container of the top-level nodes: the root, or
the children of a synthetic ``#document`` root. Edits name it with
``parent_id=None``; the synthetic root never appears in an edit.

Unchanged subtrees (equal ``signature``) are skipped without visiting their
descendants. Signatures include child ids, so equal signatures mean equal
identities as well as equal content.

Ordering guarantees:
    - every ``index`` is exact at the moment its edit is applied, i.e. the
      position the node occupies in its parent right after the edit;
    - deletes come last and name only the topmost deleted node, so a deleted
      node is never referenced afterwards and nodes surviving inside a
      deleted subtree have already been moved out;
    - reordering keeps the longest run of children already in order and
      moves only the rest.

Example:
    >>> edits = diff_trees(old_snapshot, new_snapshot)
    >>> [edit.to_dict() for edit in edits]
    [{'op': 'setText', 'tagID': -7, 'content': 'hi!'}]

"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any

from livedom.nodes import DOCUMENT_ID, Node, NodeKind, Snapshot, walk


class EditOp(Enum):
    INSERT = "insert"
    DELETE = "delete"
    MOVE = "move"
    SET_ATTRIBUTE = "setAttribute"
    REMOVE_ATTRIBUTE = "removeAttribute"
    SET_TEXT = "setText"


@dataclass(frozen=True, slots=True)
class Edit:
    """One operation of an edit script.

    Attributes:
        op: Operation
        tag_id: Node the operation targets
        parent_id: New parent (insert, move); None means the document itself
        index: Position in the parent after the operation (insert, move)
        kind: Kind of the inserted node (insert)
        tag: Tag name of an inserted element
        attributes: Attributes of an inserted element, sorted by name
        name: Attribute name (setAttribute, removeAttribute)
        value: Attribute value (setAttribute)
        content: Text of an inserted text node, or new text (setText)

    """

    op: EditOp
    tag_id: int
    parent_id: int | None = None
    index: int | None = None
    kind: NodeKind | None = None
    tag: str | None = None
    attributes: tuple[tuple[str, str], ...] = ()
    name: str | None = None
    value: str | None = None
    content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire shape: ``{"op", "tagID"}`` plus the op-specific fields."""
        result: dict[str, Any] = {"op": self.op.value, "tagID": self.tag_id}
        op = self.op
        if op is EditOp.INSERT or op is EditOp.MOVE:
            result["parentID"] = self.parent_id
            result["index"] = self.index
        if op is EditOp.INSERT:
            result["kind"] = self.kind.value if self.kind is not None else NodeKind.ELEMENT.value
            if self.kind is NodeKind.TEXT:
                result["content"] = self.content
            else:
                result["tag"] = self.tag
                result["attributes"] = dict(self.attributes)
        elif op is EditOp.SET_ATTRIBUTE:
            result["name"] = self.name
            result["value"] = self.value
        elif op is EditOp.REMOVE_ATTRIBUTE:
            result["name"] = self.name
        elif op is EditOp.SET_TEXT:
            result["content"] = self.content
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Edit:
        """Parse the wire shape produced by ``to_dict``.

        Raises:
            ValueError: If ``op`` or ``tagID`` is missing or unknown.
        """
        try:
            op = EditOp(data["op"])
            tag_id = int(data["tagID"])
        except KeyError as exc:
            msg = f"Edit is missing {exc.args[0]!r}"
            raise ValueError(msg) from exc

        kind = None
        if op is EditOp.INSERT:
            kind = NodeKind(data.get("kind", NodeKind.ELEMENT.value))
        attributes = data.get("attributes") or {}
        return cls(
            op=op,
            tag_id=tag_id,
            parent_id=data.get("parentID"),
            index=data.get("index"),
            kind=kind,
            tag=data.get("tag"),
            attributes=tuple(sorted(attributes.items())),
            name=data.get("name"),
            value=data.get("value"),
            content=data.get("content"),
        )


class _TargetModel:
    """Where every node sits in the target tree while the script plays.

    Child lists are copied from the old tree lazily, on first touch, so the
    cost follows the number of parents the script actually changes. The key
    ``None`` is the document itself, holding the top-level nodes.
    """

    __slots__ = ("_children", "_gone", "_inserted", "_old", "_parents")

    def __init__(self, old: Snapshot) -> None:
        self._old = old
        self._children: dict[int | None, list[int]] = {}
        self._parents: dict[int, int | None] = {}
        self._inserted: set[int] = set()
        self._gone: set[int] = set()

    def exists(self, tag_id: int) -> bool:
        if tag_id in self._inserted:
            return True
        return tag_id in self._old.node_map and tag_id not in self._gone

    def old_node(self, tag_id: int) -> Node | None:
        """The old node still standing for ``tag_id`` in the target, if any."""
        if tag_id in self._gone or tag_id in self._inserted:
            return None
        return self._old.get(tag_id)

    def children(self, parent_id: int | None) -> list[int]:
        kids = self._children.get(parent_id)
        if kids is None:
            if parent_id is None:
                kids = [
                    node.tag_id for node in _top_level(self._old.root) if self.exists(node.tag_id)
                ]
            else:
                node = self.old_node(parent_id)
                kids = [child.tag_id for child in node.children] if node is not None else []
            self._children[parent_id] = kids
        return kids

    def parent(self, tag_id: int) -> int | None:
        if tag_id in self._parents:
            return self._parents[tag_id]
        node = self._old.get(tag_id)
        if node is None or node.parent is None or node.parent.tag_id == DOCUMENT_ID:
            return None
        # The old snapshot may be a subtree; its root's parent is outside it.
        if self._old.get(node.parent.tag_id) is not node.parent:
            return None
        return node.parent.tag_id

    def place(self, tag_id: int, parent_id: int | None, after_id: int | None) -> int:
        """Put an existing node right after ``after_id`` (first if None)."""
        self.children(self.parent(tag_id)).remove(tag_id)
        return self._attach(tag_id, parent_id, after_id)

    def insert(self, tag_id: int, parent_id: int | None, after_id: int | None) -> int:
        self._inserted.add(tag_id)
        self._children[tag_id] = []
        return self._attach(tag_id, parent_id, after_id)

    def remove(self, tag_id: int) -> None:
        """Drop a node and everything under it from the target."""
        self.children(self.parent(tag_id)).remove(tag_id)
        old = self._old.get(tag_id)
        if old is not None:
            self._gone.update(node.tag_id for node in walk(old))
        self._inserted.discard(tag_id)

    def _attach(self, tag_id: int, parent_id: int | None, after_id: int | None) -> int:
        kids = self.children(parent_id)
        index = 0 if after_id is None else kids.index(after_id) + 1
        kids.insert(index, tag_id)
        self._parents[tag_id] = parent_id
        return index


class TreeDiffer:
    """Computes the edit script from ``old`` to ``new``.

    Single use: create one per pair of snapshots.

    """

    __slots__ = ("_edits", "_model", "_new", "_old", "_realign")

    def __init__(self, old: Snapshot, new: Snapshot) -> None:
        self._old = old
        self._new = new
        self._model = _TargetModel(old)
        self._edits: list[Edit] = []
        # Parents that lost a child up front; their child ids may not show it.
        self._realign: set[int | None] = set()

    def diff(self) -> tuple[Edit, ...]:
        self._delete_retagged()

        top = _top_level(self._new.root)
        self._align_children(None, top)

        queue: deque[Node] = deque(node for node in top if node.is_element())
        while queue:
            node = queue.popleft()
            old = self._model.old_node(node.tag_id)
            if old is not None and old.signature == node.signature:
                continue
            if old is not None and old.attribute_signature != node.attribute_signature:
                self._diff_attributes(old, node)
            if (
                old is None
                or old.child_signature != node.child_signature
                or node.tag_id in self._realign
            ):
                self._align_children(node.tag_id, node.children)
            queue.extend(child for child in node.children if child.is_element())

        self._delete_removed()
        return tuple(self._edits)

    # =========================================================================
    # Per-node comparison
    # =========================================================================

    def _diff_attributes(self, old: Node, new: Node) -> None:
        old_attrs = old.attributes
        new_attrs = new.attributes
        for name, value in new_attrs.items():
            if old_attrs.get(name) != value:
                self._edits.append(
                    Edit(EditOp.SET_ATTRIBUTE, new.tag_id, name=name, value=value)
                )
        for name in old_attrs:
            if name not in new_attrs:
                self._edits.append(Edit(EditOp.REMOVE_ATTRIBUTE, new.tag_id, name=name))

    def _align_children(self, parent_id: int | None, children: list[Node]) -> None:
        """Make the target's children of ``parent_id`` match ``children``."""
        current = self._model.children(parent_id)
        position = {tag_id: i for i, tag_id in enumerate(current)}
        stable = _longest_in_order([child.tag_id for child in children], position)

        previous_id: int | None = None
        for child in children:
            tag_id = child.tag_id
            if tag_id not in stable:
                if self._model.exists(tag_id):
                    self._move(tag_id, parent_id, previous_id)
                else:
                    self._insert(child, parent_id, previous_id)
            if child.is_text():
                old = self._model.old_node(tag_id)
                if old is not None and old.content != child.content:
                    self._edits.append(Edit(EditOp.SET_TEXT, tag_id, content=child.content))
            previous_id = tag_id

    # =========================================================================
    # Operations
    # =========================================================================

    def _insert(self, node: Node, parent_id: int | None, after_id: int | None) -> None:
        index = self._model.insert(node.tag_id, parent_id, after_id)
        if node.is_text():
            edit = Edit(
                EditOp.INSERT,
                node.tag_id,
                parent_id=parent_id,
                index=index,
                kind=NodeKind.TEXT,
                content=node.content,
            )
        else:
            edit = Edit(
                EditOp.INSERT,
                node.tag_id,
                parent_id=parent_id,
                index=index,
                kind=NodeKind.ELEMENT,
                tag=node.tag,
                attributes=tuple(sorted(node.attributes.items())),
            )
        self._edits.append(edit)

    def _move(self, tag_id: int, parent_id: int | None, after_id: int | None) -> None:
        index = self._model.place(tag_id, parent_id, after_id)
        self._edits.append(Edit(EditOp.MOVE, tag_id, parent_id=parent_id, index=index))

    def _delete_retagged(self) -> None:
        """Delete nodes whose id survives but whose kind or tag changed."""
        new_map = self._new.node_map
        retagged = {
            tag_id
            for tag_id, old in self._old.node_map.items()
            if tag_id in new_map
            and (new_map[tag_id].kind is not old.kind or new_map[tag_id].tag != old.tag)
        }
        for tag_id in self._topmost(retagged):
            self._realign.add(self._model.parent(tag_id))
            self._edits.append(Edit(EditOp.DELETE, tag_id))
            self._model.remove(tag_id)

    def _delete_removed(self) -> None:
        new_map = self._new.node_map
        removed = {
            tag_id
            for tag_id in self._old.node_map
            if tag_id not in new_map and tag_id != DOCUMENT_ID and self._model.exists(tag_id)
        }
        for tag_id in self._topmost(removed):
            self._edits.append(Edit(EditOp.DELETE, tag_id))
            self._model.remove(tag_id)

    def _topmost(self, tag_ids: set[int]) -> list[int]:
        """Members of ``tag_ids`` with no ancestor in the set, in old-tree order."""
        result = []
        for tag_id in self._old.node_map:
            if tag_id not in tag_ids:
                continue
            ancestor = self._model.parent(tag_id)
            while ancestor is not None and ancestor not in tag_ids:
                ancestor = self._model.parent(ancestor)
            if ancestor is None:
                result.append(tag_id)
        return result


def _top_level(root: Node) -> list[Node]:
    """The nodes the document itself holds: a synthetic root's children, or the root."""
    if root.tag_id == DOCUMENT_ID:
        return root.children
    return [root]


def _longest_in_order(desired: list[int], position: dict[int, int]) -> set[int]:
    """Ids of the longest subsequence of ``desired`` already in current order.

    Patience sorting over the current positions of the desired ids that are
    already under the parent: O(n log n).
    """
    ids = [tag_id for tag_id in desired if tag_id in position]
    if not ids:
        return set()
    values = [position[tag_id] for tag_id in ids]

    tails: list[int] = []  # index into values of the smallest tail per length
    back = [-1] * len(values)
    for i, value in enumerate(values):
        lo, hi = 0, len(tails)
        while lo < hi:
            mid = (lo + hi) // 2
            if values[tails[mid]] < value:
                lo = mid + 1
            else:
                hi = mid
        if lo > 0:
            back[i] = tails[lo - 1]
        if lo == len(tails):
            tails.append(i)
        else:
            tails[lo] = i

    stable: set[int] = set()
    i = tails[-1]
    while i != -1:
        stable.add(ids[i])
        i = back[i]
    return stable


def diff_trees(old: Snapshot, new: Snapshot) -> tuple[Edit, ...]:
    """Edit script turning a tree shaped like ``old`` into one like ``new``."""
    return TreeDiffer(old, new).diff()
