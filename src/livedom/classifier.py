"""Edit classifier: can an edit be handled by reparsing one subtree?

An edit is structurally dangerous when its text contains a character that
can open or close a tag, introduce or remove an attribute, or change
quoting. Entity markers (``&``) only affect text content and are safe.

"""

from __future__ import annotations

from enum import Enum

from livedom.deltas import EditDelta

DANGEROUS_CHARACTERS: frozenset[str] = frozenset('<>/="\'')


class UpdateMode(Enum):
    INCREMENTAL = "incremental"
    FULL = "full"


def is_dangerous_edit(text: str) -> bool:
    """True if inserting or removing ``text`` may change document structure.

    Example:
        >>> is_dangerous_edit("hello &amp; goodbye")
        False
        >>> is_dangerous_edit('class="x"')
        True

    """
    return not DANGEROUS_CHARACTERS.isdisjoint(text)


def classify_edit(delta: EditDelta | None) -> UpdateMode:
    """Pick the update path an edit is eligible for.

    Missing deltas and empty edits carry no information about what changed,
    so they force a full reparse, as do dangerous edits. An INCREMENTAL
    answer is only eligibility: the updater still needs an enclosing node.
    """
    if delta is None:
        return UpdateMode.FULL
    text = delta.changed_text
    if not text or is_dangerous_edit(text):
        return UpdateMode.FULL
    return UpdateMode.INCREMENTAL
