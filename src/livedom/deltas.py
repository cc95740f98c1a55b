"""Text edit deltas.

An EditDelta describes one change reported by the editing surface: a
range, whether text was inserted or removed, and the changed text. Ranges
of insertions are expressed in post-edit coordinates (``end`` is where the
inserted text ends); ranges of removals in pre-edit coordinates.

Wire shape::

    {"range": {"start": {"row": 0, "column": 4}, "end": {"row": 0, "column": 5}},
     "action": "insertText", "text": "!"}

Multi-line actions carry ``"lines"`` instead of ``"text"``.

"""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from enum import Enum
from typing import Any

from livedom.location import LineIndex, Position, TextBuffer, end_of


class DeltaAction(Enum):
    INSERT_TEXT = "insertText"
    REMOVE_TEXT = "removeText"
    INSERT_LINES = "insertLines"
    REMOVE_LINES = "removeLines"

    @property
    def is_insert(self) -> bool:
        return self in (DeltaAction.INSERT_TEXT, DeltaAction.INSERT_LINES)


@dataclass(frozen=True, slots=True)
class EditDelta:
    """One text change.

    Attributes:
        action: Kind of change
        start: Start of the changed range
        end: End of the changed range
        text: Changed text (single-line actions)
        lines: Changed lines (multi-line actions)

    """

    action: DeltaAction
    start: Position
    end: Position
    text: str | None = None
    lines: tuple[str, ...] | None = None

    @property
    def is_insert(self) -> bool:
        return self.action.is_insert

    @property
    def changed_text(self) -> str:
        """The inserted or removed text, with lines joined by newlines."""
        if self.text is not None:
            return self.text
        if self.lines is not None:
            return "\n".join(self.lines)
        return ""

    @property
    def row_delta(self) -> int:
        return self.end.row - self.start.row

    @classmethod
    def insert(cls, start: Position, text: str) -> EditDelta:
        """Build the delta for inserting ``text`` at ``start``."""
        if "\n" in text:
            return cls(
                DeltaAction.INSERT_LINES, start, end_of(start, text), lines=tuple(text.split("\n"))
            )
        return cls(DeltaAction.INSERT_TEXT, start, end_of(start, text), text=text)

    @classmethod
    def remove(cls, start: Position, end: Position, text: str) -> EditDelta:
        """Build the delta for removing ``text`` spanning ``start``..``end``."""
        if "\n" in text:
            return cls(DeltaAction.REMOVE_LINES, start, end, lines=tuple(text.split("\n")))
        return cls(DeltaAction.REMOVE_TEXT, start, end, text=text)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditDelta:
        """Parse the wire shape.

        Raises:
            ValueError: If the action is unknown or the range is malformed.
        """
        try:
            action = DeltaAction(data["action"])
            rng = data["range"]
            start = Position.from_dict(rng["start"])
            end = Position.from_dict(rng["end"])
        except KeyError as exc:
            msg = f"Delta is missing {exc.args[0]!r}"
            raise ValueError(msg) from exc

        text = data.get("text")
        lines = data.get("lines")
        if not isinstance(text, str):
            text = None
        if isinstance(lines, list | tuple):
            lines = tuple(str(line) for line in lines)
        else:
            lines = None
        if text is None and lines is None:
            msg = "Delta carries neither 'text' nor 'lines'"
            raise ValueError(msg)
        return cls(action, start, end, text=text, lines=lines)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "range": {"start": self.start.to_dict(), "end": self.end.to_dict()},
            "action": self.action.value,
        }
        if self.lines is not None:
            result["lines"] = list(self.lines)
        else:
            result["text"] = self.text or ""
        return result

    def apply(self, text: str) -> str:
        """Return ``text`` with this change applied."""
        index = LineIndex(text)
        start = index.offset(self.start)
        if self.is_insert:
            return text[:start] + self.changed_text + text[start:]
        return text[:start] + text[index.offset(self.end) :]

    def apply_to(self, buffer: TextBuffer) -> None:
        """Apply this change to ``buffer`` in place."""
        if self.is_insert:
            buffer.replace(self.start, self.start, self.changed_text)
        else:
            buffer.replace(self.start, self.end, "")


# Replaced line blocks up to this many characters a side are refined to
# character-level deltas; larger blocks are replaced whole.
REFINE_LIMIT = 1024


def deltas_between(old: str, new: str) -> list[EditDelta]:
    """Express the change from ``old`` to ``new`` as ordered deltas.

    Each delta's coordinates refer to the text as it stands after all
    earlier deltas in the list have been applied, so replaying them in
    order through ``EditDelta.apply`` turns ``old`` into ``new``.

    Lines are matched first; only the blocks of lines that changed are
    compared character by character.

    """
    old_lines = old.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines)
    deltas: list[EditDelta] = []
    cursor = Position(0, 0)

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        removed = "".join(old_lines[i1:i2])
        if tag == "equal":
            cursor = end_of(cursor, removed)
            continue
        inserted = "".join(new_lines[j1:j2])
        if tag == "replace" and len(removed) <= REFINE_LIMIT and len(inserted) <= REFINE_LIMIT:
            cursor = _char_deltas(removed, inserted, cursor, deltas)
        else:
            cursor = _replace(removed, inserted, cursor, deltas)

    return deltas


def _char_deltas(old: str, new: str, cursor: Position, deltas: list[EditDelta]) -> Position:
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            cursor = end_of(cursor, old[i1:i2])
        else:
            cursor = _replace(old[i1:i2], new[j1:j2], cursor, deltas)
    return cursor


def _replace(old: str, new: str, cursor: Position, deltas: list[EditDelta]) -> Position:
    """Append the removal of ``old`` and insertion of ``new`` at ``cursor``."""
    if old:
        deltas.append(EditDelta.remove(cursor, end_of(cursor, old), old))
    if new:
        delta = EditDelta.insert(cursor, new)
        deltas.append(delta)
        cursor = delta.end
    return cursor
