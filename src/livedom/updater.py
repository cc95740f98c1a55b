"""Incremental tree updates.

Given the previous snapshot, the full post-edit text and the edit delta,
produce the new snapshot and the edit script that takes a consumer from
the old tree to the new one.

Steps:
1. Shift the previous tree's boundaries for the delta (always, even when a
   full reparse follows, so identity lookups see current coordinates).
2. If the edit is safe and an enclosing element with a parent resolves,
   reparse only that element's span with identity preservation, splice the
   result in its place and diff the two subtrees.
3. Otherwise, or when step 2 fails, reparse the whole text with identity
   preservation and diff the whole trees.

Fallback:
    Any problem on the incremental path degrades to the full path. The
    previous snapshot is only mutated after the new subtree has been fully
    validated, so it is never left half-swapped.

Thread Safety:
    Not thread-safe: the previous snapshot is mutated in place. Serialize
    updates per document.

"""

from __future__ import annotations

from dataclasses import dataclass

from livedom.builder import Builder
from livedom.classifier import UpdateMode, classify_edit
from livedom.config import SyncConfig, resolve_config
from livedom.deltas import EditDelta
from livedom.differ import Edit, diff_trees
from livedom.errors import ParseError, SubtreeSwapError
from livedom.ids import (
    FreshIdPolicy,
    IdentityPolicy,
    IdGenerator,
    PositionLookup,
    PreservingIdPolicy,
)
from livedom.location import Position, TextBuffer
from livedom.nodes import DOCUMENT_ID, Node, Snapshot, build_node_map, walk
from livedom.profiling import get_update_accumulator
from livedom.query import edit_enclosing_node, tree_lookup
from livedom.tracker import shift_positions
from livedom.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Outcome of one update.

    Attributes:
        snapshot: The current tree, or None when the text does not parse
        old_subtree: Root of the replaced region in the previous tree
        new_subtree: Root of the rebuilt region in the new tree
        edits: Edit script from the previous tree to ``snapshot``
        errors: Parse errors of the full reparse (only when ``snapshot`` is None)
        incremental: True if only one element's span was reparsed
        removed_ids: Ids present before the update and gone after it

    """

    snapshot: Snapshot | None
    old_subtree: Node | None = None
    new_subtree: Node | None = None
    edits: tuple[Edit, ...] = ()
    errors: tuple[ParseError, ...] = ()
    incremental: bool = False
    removed_ids: frozenset[int] = frozenset()

    @property
    def ok(self) -> bool:
        return self.snapshot is not None

    def marker_ranges(self) -> dict[int, tuple[Position, Position]]:
        """New boundaries of every element in the rebuilt region.

        Consumers owning a boundary-marker store update it from this map
        and drop the markers named by ``removed_ids``.
        """
        if self.new_subtree is None:
            return {}
        return {
            node.tag_id: (node.start_pos, node.end_pos)
            for node in walk(self.new_subtree)
            if node.is_element() and not node.is_synthetic
        }


class _Fallback(Exception):
    """The incremental path cannot handle this edit."""


def update_tree(
    previous: Snapshot | None,
    text: str | TextBuffer,
    delta: EditDelta | None = None,
    *,
    generator: IdGenerator,
    lookup: PositionLookup | None = None,
    config: SyncConfig | None = None,
    force_full: bool = False,
) -> UpdateResult:
    """Bring ``previous`` in step with ``text`` after ``delta``.

    Args:
        previous: Last valid snapshot (None for the first build); mutated
            in place
        text: The whole text after the edit, as a string or a buffer (a
            buffer lets the incremental path read only the reparsed span)
        delta: The edit that produced ``text`` (None forces a full reparse)
        generator: Id sequence that numbered ``previous``; it keeps the
            high-water mark, so ids are never scanned
        lookup: Marked-span lookup (answers from ``previous`` if None)
        config: Sync configuration
        force_full: Skip the incremental path

    Returns:
        UpdateResult. When the text does not parse, ``snapshot`` is None and
        ``previous`` keeps its shifted boundaries.

    """
    config = resolve_config(config)
    acc = get_update_accumulator()
    source = text if isinstance(text, TextBuffer) else TextBuffer(text)

    if previous is not None and delta is not None:
        visited = shift_positions(previous.root, delta)
        if acc is not None:
            acc.record_shift(visited)

    if previous is not None and lookup is None:
        lookup = tree_lookup(previous)

    if (
        previous is not None
        and lookup is not None
        and not force_full
        and config.incremental
        and classify_edit(delta) is UpdateMode.INCREMENTAL
    ):
        try:
            result = _update_incremental(previous, source, delta, generator, lookup, config)
        except _Fallback as exc:
            logger.debug("Falling back to full reparse: %s", exc)
            if acc is not None:
                acc.record_fallback()
        else:
            if acc is not None:
                acc.record_update(
                    incremental=True,
                    reparsed_chars=_span_length(source, result.new_subtree),
                    edits=len(result.edits),
                )
            return result

    full_text = source.text
    result = _update_full(previous, full_text, generator, lookup, config)
    if acc is not None:
        acc.record_update(
            incremental=False, reparsed_chars=len(full_text), edits=len(result.edits)
        )
    return result


def _update_incremental(
    previous: Snapshot,
    source: TextBuffer,
    delta: EditDelta | None,
    generator: IdGenerator,
    lookup: PositionLookup,
    config: SyncConfig,
) -> UpdateResult:
    if delta is None:
        raise _Fallback("no delta")
    old = edit_enclosing_node(previous.root, delta)
    if old is None:
        raise _Fallback("no element encloses the edit")
    if old.parent is None:
        raise _Fallback("edit is enclosed only by the root")

    span = source.slice(old.start_pos, old.end_pos)
    policy = PreservingIdPolicy(previous, lookup, generator)
    built = Builder(span, start_pos=old.start_pos, policy=policy, config=config).build()
    if built.snapshot is None:
        raise _Fallback(f"reparse of <{old.tag}> #{old.tag_id} failed: {built.errors[0]}")

    new = built.snapshot.root
    if new.is_synthetic or new.tag_id != old.tag_id:
        raise _Fallback(f"reparse of <{old.tag}> #{old.tag_id} changed its shape")
    if new.start_pos != old.start_pos or new.end_pos != old.end_pos:
        raise _Fallback(f"reparse of <{old.tag}> #{old.tag_id} changed its span")
    if new.implicit_end != old.implicit_end:
        # Its own end tag no longer closes it, so in the full text it may run on.
        raise _Fallback(f"reparse of <{old.tag}> #{old.tag_id} changed how it is closed")

    old_map = build_node_map(old)
    new_map = built.snapshot.node_map
    node_map = previous.node_map
    for tag_id in new_map:
        if tag_id in node_map and tag_id not in old_map:
            raise _Fallback(f"id {tag_id} is already used outside the reparsed span")

    try:
        previous.replace_subtree(old, new)
    except SubtreeSwapError as exc:
        logger.warning("%s", exc)
        raise _Fallback(str(exc)) from exc

    removed = frozenset(tag_id for tag_id in old_map if tag_id not in new_map)
    for tag_id in removed:
        del node_map[tag_id]
    node_map.update(new_map)
    new.update_ancestors(config.signature_length)

    edits = diff_trees(Snapshot(old, old_map), built.snapshot)
    logger.debug(
        "Reparsed <%s> #%d incrementally: %d edits", new.tag, new.tag_id, len(edits)
    )
    return UpdateResult(
        snapshot=previous,
        old_subtree=old,
        new_subtree=new,
        edits=edits,
        incremental=True,
        removed_ids=removed,
    )


def _update_full(
    previous: Snapshot | None,
    text: str,
    generator: IdGenerator,
    lookup: PositionLookup | None,
    config: SyncConfig,
) -> UpdateResult:
    policy: IdentityPolicy
    if previous is not None and lookup is not None:
        policy = PreservingIdPolicy(previous, lookup, generator)
    else:
        policy = FreshIdPolicy(generator)

    built = Builder(text, policy=policy, config=config).build()
    if built.snapshot is None:
        logger.debug("Full reparse failed: %s", built.errors[0])
        return UpdateResult(snapshot=None, errors=built.errors)

    snapshot = built.snapshot
    if previous is None:
        return UpdateResult(snapshot=snapshot, new_subtree=snapshot.root)

    edits = diff_trees(previous, snapshot)
    removed = frozenset(
        tag_id
        for tag_id in previous.node_map
        if tag_id not in snapshot and tag_id != DOCUMENT_ID
    )
    return UpdateResult(
        snapshot=snapshot,
        old_subtree=previous.root,
        new_subtree=snapshot.root,
        edits=edits,
        removed_ids=removed,
    )


def _span_length(source: TextBuffer, node: Node | None) -> int:
    if node is None:
        return 0
    return len(source.slice(node.start_pos, node.end_pos))
