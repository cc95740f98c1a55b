"""Tree and edit-script serialization: JSON round-trip for livedom.

Converts node trees to/from JSON-compatible dicts and edit scripts to/from
their wire format. Useful for:
- Receiving the renderer's observed tree for reconciliation
- Sending edit scripts over the wire
- Debugging and inspection

All output is deterministic (sorted keys).

Node shape::

    {"_type": "Element", "tagID": 1, "tag": "p", "attributes": {"class": "x"},
     "start": {"row": 0, "column": 0}, "end": {"row": 0, "column": 9},
     "children": [{"_type": "Text", "tagID": -3, "content": "hi", ...}]}

``tagID``, ``attributes``, ``start``, ``end`` and ``children`` are optional
on input. Entries with ``"_type": "Comment"`` are skipped.

Thread Safety:
    All functions are pure and safe to call from any thread.

"""

import json
from collections.abc import Iterable
from typing import Any

from livedom.config import SyncConfig, resolve_config
from livedom.differ import Edit
from livedom.location import ORIGIN, Position
from livedom.nodes import Node, NodeKind, Snapshot

_ELEMENT = "Element"
_TEXT = "Text"
_COMMENT = "Comment"


def node_to_dict(node: Node) -> dict[str, Any]:
    """Convert a node and its subtree to a JSON-compatible dict.

    Includes a ``_type`` discriminator field for deserialization.

    """
    result: dict[str, Any] = {
        "_type": _TEXT if node.kind is NodeKind.TEXT else _ELEMENT,
        "tagID": node.tag_id,
        "start": node.start_pos.to_dict(),
        "end": node.end_pos.to_dict(),
    }
    if node.kind is NodeKind.TEXT:
        result["content"] = node.content
    else:
        result["tag"] = node.tag
        result["attributes"] = dict(node.attributes)
        result["children"] = [node_to_dict(child) for child in node.children]
    return result


def node_from_dict(data: dict[str, Any], *, config: SyncConfig | None = None) -> Node:
    """Reconstruct a node tree from a dict, signatures included.

    Args:
        data: Dict with ``_type`` and node fields (as produced by node_to_dict).
        config: Sync configuration (for the signature length).

    Raises:
        ValueError: If ``_type`` is missing or unknown, or a required field
            is missing.

    """
    length = resolve_config(config).signature_length
    node = _node_from_dict(data)
    if node is None:
        msg = "Serialized root cannot be a comment"
        raise ValueError(msg)
    _update_bottom_up(node, length)
    return node


def _node_from_dict(data: dict[str, Any]) -> Node | None:
    if not isinstance(data, dict):
        msg = f"Expected a serialized node, got {type(data).__name__}"
        raise ValueError(msg)

    type_name = data.get("_type")
    if type_name is None:
        msg = "Missing '_type' field in serialized node"
        raise ValueError(msg)
    if type_name == _COMMENT:
        return None

    start = _position(data.get("start"))
    end = _position(data.get("end"))
    tag_id = int(data.get("tagID", 0))

    if type_name == _TEXT:
        return Node.text(
            str(data.get("content", "")), tag_id=tag_id, start_pos=start, end_pos=end
        )
    if type_name != _ELEMENT:
        msg = f"Unknown node type: {type_name!r}"
        raise ValueError(msg)

    tag = data.get("tag")
    if not tag:
        msg = "Serialized element is missing 'tag'"
        raise ValueError(msg)
    attributes = {
        str(name).lower(): str(value) for name, value in (data.get("attributes") or {}).items()
    }
    node = Node.element(
        str(tag).lower(), attributes, tag_id=tag_id, start_pos=start, end_pos=end
    )
    for raw_child in data.get("children") or ():
        child = _node_from_dict(raw_child)
        if child is not None:
            node.append(child)
    return node


def _position(raw: Any) -> Position:
    if raw is None:
        return ORIGIN
    return Position.from_dict(raw)


def _update_bottom_up(node: Node, length: int) -> None:
    for child in node.children:
        _update_bottom_up(child, length)
    node.update(length)


def snapshot_to_json(snapshot: Snapshot, *, indent: int | None = None) -> str:
    """Serialize a snapshot's tree to a JSON string."""
    return json.dumps(node_to_dict(snapshot.root), sort_keys=True, indent=indent)


def snapshot_from_json(data: str, *, config: SyncConfig | None = None) -> Snapshot:
    """Deserialize a snapshot from a JSON string.

    Raises:
        ValueError: If the JSON doesn't represent a node tree.

    """
    return Snapshot.from_root(node_from_dict(json.loads(data), config=config))


def edits_to_json(edits: Iterable[Edit], *, indent: int | None = None) -> str:
    """Serialize an edit script to its JSON wire format."""
    return json.dumps([edit.to_dict() for edit in edits], sort_keys=True, indent=indent)


def edits_from_json(data: str) -> tuple[Edit, ...]:
    """Deserialize an edit script from its JSON wire format.

    Raises:
        ValueError: If the JSON is not a list of edits.

    """
    raw = json.loads(data)
    if not isinstance(raw, list):
        msg = f"Expected a list of edits, got {type(raw).__name__}"
        raise ValueError(msg)
    edits = []
    for item in raw:
        if not isinstance(item, dict):
            msg = f"Expected a serialized edit, got {type(item).__name__}"
            raise ValueError(msg)
        edits.append(Edit.from_dict(item))
    return tuple(edits)
