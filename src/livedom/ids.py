"""Identifier generation and identity policies.

The builder asks an identity policy for the id of every element it
creates. Policies are plain objects passed in by the caller, so the same
builder serves the initial full-document build, identity-preserving
updates, and reparsing of instrumented markup.

Policies:
    FreshIdPolicy: every element gets the next id from a generator.
    PreservingIdPolicy: reuse the id that marked the element's span in the
        previous tree, unless that would be unsafe.
    EmbeddedIdPolicy: read the id from the reserved attribute that
        instrumentation injected, stripping it from the attributes.

Thread Safety:
    IdGenerator and the policies hold mutable state. Use one per document.

"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, TypeAlias

from livedom.location import Position, offset_pos

if TYPE_CHECKING:
    from livedom.nodes import Node, Snapshot

# (position, prefer_parent) -> tag id marking that position, or None
PositionLookup: TypeAlias = Callable[[Position, bool], int | None]


class IdGenerator:
    """Resettable monotonic sequence of element ids.

    Example:
        >>> ids = IdGenerator()
        >>> ids.next(), ids.next()
        (1, 2)
        >>> ids.reset()
        >>> ids.next()
        1

    """

    __slots__ = ("_next", "_start")

    def __init__(self, start: int = 1) -> None:
        self._start = start
        self._next = start

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value

    def peek(self) -> int:
        """The id the next call to ``next()`` will return."""
        return self._next

    def advance_past(self, tag_id: int) -> None:
        """Make sure future ids are greater than ``tag_id``."""
        if tag_id >= self._next:
            self._next = tag_id + 1

    def reset(self, start: int | None = None) -> None:
        if start is not None:
            self._start = start
        self._next = self._start


class IdentityPolicy(Protocol):
    """Protocol for element id assignment.

    ``assign`` is called once per element, after its tag name, attributes,
    ``start_pos`` and ``parent`` are set but before any child is built.
    """

    def assign(self, node: Node) -> int:
        """Return the id for ``node``."""
        ...


class FreshIdPolicy:
    """Every element gets a fresh, monotonically increasing id."""

    __slots__ = ("_generator",)

    def __init__(self, generator: IdGenerator) -> None:
        self._generator = generator

    def assign(self, node: Node) -> int:
        return self._generator.next()


class PreservingIdPolicy:
    """Reuse the ids of elements whose spans were marked in the previous tree.

    The lookup is asked about the position just inside the new element's
    ``<`` (the ``<`` itself still belongs to the parent). A fresh id is
    minted when:

    - nothing marks that position;
    - the marked id belongs to an ancestor of the new element, so the
      element did not exist before;
    - the previous node with that id has a different tag name (a renamed
      tag is a delete plus an insert, never an in-place update);
    - the id was already handed out earlier in this build.

    Fresh ids skip every id still in use by the previous tree, and reused
    ids advance the generator, so the generator always stays ahead of the
    ids it has seen.

    """

    __slots__ = ("_generator", "_lookup", "_previous", "_used")

    def __init__(
        self,
        previous: Snapshot,
        lookup: PositionLookup,
        generator: IdGenerator,
    ) -> None:
        self._previous = previous
        self._lookup = lookup
        self._generator = generator
        self._used: set[int] = set()

    def assign(self, node: Node) -> int:
        tag_id = self._lookup(offset_pos(node.start_pos, 1), False)
        if (
            tag_id is None
            or tag_id in self._used
            or node.has_ancestor_with_id(tag_id)
        ):
            return self._fresh()

        old = self._previous.get(tag_id)
        if old is None or not old.is_element() or old.tag != node.tag:
            return self._fresh()

        self._used.add(tag_id)
        self._generator.advance_past(tag_id)
        return tag_id

    def _fresh(self) -> int:
        tag_id = self._generator.next()
        while tag_id in self._previous.node_map:
            tag_id = self._generator.next()
        self._used.add(tag_id)
        return tag_id


class EmbeddedIdPolicy:
    """Take ids from the reserved attribute injected by instrumentation.

    The attribute is removed from the element so it never reaches a diff.
    Elements without a usable id (missing, not an integer, or already
    seen) get a fresh one from the generator.
    """

    __slots__ = ("_attribute", "_generator", "_used")

    def __init__(self, generator: IdGenerator, attribute: str) -> None:
        self._generator = generator
        self._attribute = attribute
        self._used: set[int] = set()

    def assign(self, node: Node) -> int:
        raw = node.attributes.pop(self._attribute, None)
        tag_id = parse_tag_id(raw)
        if tag_id is None or tag_id in self._used:
            tag_id = self._generator.next()
        else:
            self._generator.advance_past(tag_id)
        self._used.add(tag_id)
        return tag_id


def parse_tag_id(raw: object) -> int | None:
    """Parse an element id from an attribute value; None if unusable."""
    if raw is None:
        return None
    try:
        tag_id = int(str(raw).strip())
    except ValueError:
        return None
    return tag_id if tag_id > 0 else None
