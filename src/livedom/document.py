"""Live document session.

A LiveDocument owns one text buffer and keeps its tree in step with it:
the buffer, the current snapshot, the id sequence and the parse-error
state. It is the entry point most callers need.

Lifecycle:
    doc = LiveDocument(text)
    html = doc.instrumented_html()          # what the renderer loads
    result = doc.apply_delta(delta)         # after every edit
    send(result.edits)                      # what the renderer applies
    doc.reconcile(observed)                 # occasionally, to catch drift

Error state:
    While the text does not parse, updates produce no edits and the last
    valid snapshot keeps receiving position shifts, so it still lines up
    with the text. The first update that parses again runs a full reparse
    and its edits catch the renderer up on everything that changed in
    between.

Thread Safety:
    Not thread-safe. Serialize ``apply_delta``/``set_text`` with queries on
    the same document; separate documents are independent.

"""

from __future__ import annotations

from typing import Any

from livedom.builder import build
from livedom.config import SyncConfig
from livedom.deltas import EditDelta, deltas_between
from livedom.errors import LiveDomError, ParseError
from livedom.ids import IdGenerator
from livedom.instrumentation import generate_instrumented_html
from livedom.location import Position, TextBuffer
from livedom.nodes import Node, Snapshot, walk
from livedom.query import node_at
from livedom.reconciler import ReconcileResult, reconcile
from livedom.tracker import shift_positions
from livedom.updater import UpdateResult, update_tree
from livedom.utils.logger import get_logger

logger = get_logger(__name__)


class LiveDocument:
    """One HTML document kept in sync with its tree.

    Args:
        text: Initial text
        config: Sync configuration (the active context config if None)
        generator: Id sequence (a fresh one if None)

    """

    __slots__ = ("_buffer", "_config", "_errors", "_generator", "_scanned", "_snapshot")

    def __init__(
        self,
        text: str = "",
        *,
        config: SyncConfig | None = None,
        generator: IdGenerator | None = None,
    ) -> None:
        self._buffer = TextBuffer(text)
        self._config = config
        self._generator = generator if generator is not None else IdGenerator()
        self._snapshot: Snapshot | None = None
        self._errors: tuple[ParseError, ...] = ()
        self._scanned = False

    @property
    def text(self) -> str:
        return self._buffer.text

    @property
    def snapshot(self) -> Snapshot | None:
        """Last valid snapshot (None until the text has parsed once)."""
        return self._snapshot

    @property
    def errors(self) -> tuple[ParseError, ...]:
        return self._errors

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    def scan(self) -> Snapshot | None:
        """Build the initial tree with fresh ids. Cached after the first call."""
        if self._scanned:
            return self._snapshot
        self._scanned = True
        self._generator.reset()
        result = build(self._buffer.text, generator=self._generator, config=self._config)
        self._snapshot = result.snapshot
        self._errors = result.errors
        if result.errors:
            logger.info("Document does not parse: %s", result.errors[0])
        return self._snapshot

    def instrumented_html(self) -> str | None:
        """Text with every element's id injected, or None while it does not parse."""
        snapshot = self.scan()
        if snapshot is None or self.has_errors:
            return None
        return generate_instrumented_html(snapshot, self._buffer.text, config=self._config)

    def apply_delta(self, delta: EditDelta | dict[str, Any]) -> UpdateResult:
        """Apply one edit to the buffer and update the tree.

        Raises:
            ValueError: If ``delta`` is a malformed wire dict.
        """
        if isinstance(delta, dict):
            delta = EditDelta.from_dict(delta)
        self.scan()
        delta.apply_to(self._buffer)
        return self._update(delta)

    def set_text(self, text: str) -> UpdateResult:
        """Replace the whole buffer (reload, revert) and update the tree.

        The replacement is expressed as deltas and replayed through the
        position tracker so identities survive where the text did, then the
        tree is rebuilt in one full update.
        """
        self.scan()
        deltas = deltas_between(self._buffer.text, text)
        if not deltas:
            return UpdateResult(
                snapshot=None if self.has_errors else self._snapshot, errors=self._errors
            )
        if self._snapshot is not None:
            for delta in deltas:
                shift_positions(self._snapshot.root, delta)
        self._buffer = TextBuffer(text)
        return self._update(None)

    def _update(self, delta: EditDelta | None) -> UpdateResult:
        was_broken = self.has_errors
        result = update_tree(
            self._snapshot,
            self._buffer,
            delta,
            generator=self._generator,
            config=self._config,
            force_full=was_broken,
        )
        if result.snapshot is None:
            if not was_broken:
                logger.info("Document stopped parsing: %s", result.errors[0])
            self._errors = result.errors
            return result

        if was_broken:
            logger.info("Document parses again; %d edits to catch up", len(result.edits))
        self._errors = ()
        self._snapshot = result.snapshot
        return result

    # =========================================================================
    # Queries
    # =========================================================================

    def node_at(self, pos: Position, prefer_parent: bool = False) -> Node | None:
        """Element at a cursor position (see ``livedom.query.node_at``)."""
        snapshot = self.scan()
        if snapshot is None:
            return None
        return node_at(snapshot.root, pos, prefer_parent)

    def tag_id_at(self, pos: Position) -> int | None:
        node = self.node_at(pos)
        return node.tag_id if node is not None else None

    def reconcile(self, observed: Node | dict[str, Any] | str) -> ReconcileResult:
        """Diff the renderer's copy of the document against this tree.

        Raises:
            LiveDomError: If the text has never parsed.
        """
        snapshot = self.scan()
        if snapshot is None:
            msg = "Document has no valid tree to reconcile against"
            raise LiveDomError(msg)
        return reconcile(snapshot, observed, config=self._config)

    def id_remap(self) -> dict[int, int]:
        """Map the ids a fresh build would assign to the ids in use.

        A renderer that loaded the plain (uninstrumented) text numbers its
        elements the way a fresh build does: in document order from 1. Only
        ids that differ are included.
        """
        snapshot = self.scan()
        if snapshot is None:
            return {}
        remap: dict[int, int] = {}
        fresh = IdGenerator()
        for node in walk(snapshot.root):
            if not node.is_element() or node.is_synthetic:
                continue
            default_id = fresh.next()
            if node.tag_id != default_id:
                remap[default_id] = node.tag_id
        return remap

    def __repr__(self) -> str:
        state = "errors" if self.has_errors else "ok"
        return f"LiveDocument(chars={len(self.text)}, state={state}, snapshot={self._snapshot!r})"
