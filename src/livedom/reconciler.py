"""Reconciler: detect and correct drift between the local tree and the renderer.

The renderer's copy of the document can drift from the local tree: scripts
mutate it, the renderer injects wrappers (``<html>``, ``<body>``) the
source never had, or an edit message was lost. The reconciler maps an
observed copy into the local id space and diffs it against the local tree.

Mapping:
    - elements carrying the reserved attribute take their id from it (the
      attribute is dropped so it never reaches the diff);
    - elements without it were created by the renderer and get fresh ids
      above every local id, so they can never be mistaken for local nodes;
    - adjacent text runs are merged and text ids derived from sibling
      position, exactly as the builder does.

The comparison root is the observed node carrying the local root's id, so
injected wrappers around it are ignored. A document with several top-level
nodes has no root of its own; the renderer's container of its top-level
elements (usually ``<body>``) stands in for it. The edits are corrective:
applied to the renderer, they turn the observed tree back into the local one.

Example:
    >>> result = reconcile(snapshot, '<html><body><div data-livedom-id="1"></div></body></html>')
    >>> result.root_matched, result.edits
    (True, ())

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from livedom.builder import build
from livedom.config import SyncConfig, resolve_config
from livedom.differ import Edit, diff_trees
from livedom.ids import EmbeddedIdPolicy, IdGenerator
from livedom.nodes import DOCUMENT_ID, DOCUMENT_TAG, Node, Snapshot, text_node_id
from livedom.serialization import node_from_dict
from livedom.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of one reconciliation.

    Attributes:
        edits: Corrective edit script, from the observed tree to the local one
        observed: The observed tree mapped into the local id space
        root_matched: True if an observed node carries the local root's id, or
            for a multi-root document, one of its top-level elements' ids

    """

    edits: tuple[Edit, ...]
    observed: Snapshot
    root_matched: bool

    @property
    def in_sync(self) -> bool:
        return not self.edits


def reconcile(
    local: Snapshot,
    observed: Node | dict[str, Any] | str,
    *,
    config: SyncConfig | None = None,
) -> ReconcileResult:
    """Diff an observed copy of the document against the local tree.

    Args:
        local: The local snapshot (source of truth)
        observed: The renderer's tree as a Node tree, a serialized dict
            (see ``livedom.serialization``) or instrumented HTML
        config: Sync configuration (``id_attribute`` names the attribute)

    Raises:
        ParseError: If observed HTML cannot be resolved into balanced tags.
        ValueError: If a serialized tree is malformed.

    """
    config = resolve_config(config)
    policy = EmbeddedIdPolicy(IdGenerator(local.max_id() + 1), config.id_attribute)

    if isinstance(observed, str):
        built = build(observed, policy=policy, config=config)
        if built.snapshot is None:
            raise built.errors[0]
        observed_snapshot = built.snapshot
    else:
        if isinstance(observed, dict):
            observed = node_from_dict(observed, config=config)
        if not observed.is_element():
            msg = "Observed tree must have an element at its root"
            raise ValueError(msg)
        root = _map_ids(observed, policy, config)
        observed_snapshot = Snapshot.from_root(root)

    local_root = local.root
    if local_root.tag_id == DOCUMENT_ID:
        compare = _document_stand_in(local_root, observed_snapshot, config)
        root_matched = compare is not None
    else:
        match = observed_snapshot.get(local_root.tag_id)
        root_matched = match is not None and match.is_element() and match.tag == local_root.tag
        compare = match if root_matched else None
    if compare is None:
        compare = observed_snapshot.root

    edits = diff_trees(Snapshot.from_root(compare), local)
    if edits:
        logger.debug("Observed tree drifted from #%d: %d edits", local_root.tag_id, len(edits))
    return ReconcileResult(edits=edits, observed=observed_snapshot, root_matched=root_matched)


def _document_stand_in(local_root: Node, observed: Snapshot, config: SyncConfig) -> Node | None:
    """Find what the renderer keeps a multi-root document's top level in.

    The container is the observed parent (usually ``<body>``) of the first
    local top-level element the renderer still has. Its children are
    gathered under a wrapper with the document id; element links are left
    pointing at the renderer's container, and text runs are renumbered as
    top-level runs. Returns None if no top-level element was found.
    """
    for node in local_root.children:
        if not node.is_element():
            continue
        match = observed.get(node.tag_id)
        if match is not None and match.is_element() and match.tag == node.tag:
            members = match.parent.children if match.parent is not None else [match]
            break
    else:
        return None

    stand_in = Node.element(DOCUMENT_TAG, tag_id=DOCUMENT_ID)
    for child in members:
        if child.is_element():
            stand_in.children.append(child)
            continue
        previous = stand_in.children[-1] if stand_in.children else None
        text = Node.text(
            child.content,
            tag_id=text_node_id(None, previous),
            start_pos=child.start_pos,
            end_pos=child.end_pos,
        )
        text.update(config.signature_length)
        stand_in.append(text)
    stand_in.update(config.signature_length)
    return stand_in


def _map_ids(node: Node, policy: EmbeddedIdPolicy, config: SyncConfig) -> Node:
    """Copy an element's subtree into the local id space."""
    copy = Node.element(
        node.tag, node.attributes, start_pos=node.start_pos, end_pos=node.end_pos
    )
    if node.is_synthetic:
        copy.attributes.pop(config.id_attribute, None)
        copy.tag_id = DOCUMENT_ID
    else:
        # An id already resolved by an earlier parse counts as the attribute.
        if node.tag_id > 0:
            copy.attributes.setdefault(config.id_attribute, str(node.tag_id))
        copy.tag_id = policy.assign(copy)

    for child in node.children:
        previous = copy.children[-1] if copy.children else None
        if child.is_element():
            copy.append(_map_ids(child, policy, config))
        elif previous is not None and previous.is_text():
            previous.content += child.content
            previous.end_pos = child.end_pos
        else:
            copy.append(
                Node.text(
                    child.content,
                    tag_id=text_node_id(copy, previous),
                    start_pos=child.start_pos,
                    end_pos=child.end_pos,
                )
            )

    for child in copy.children:
        if child.is_text():
            child.update(config.signature_length)
    copy.update(config.signature_length)
    return copy
