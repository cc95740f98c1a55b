"""Document coordinates for livedom.

Provides the Position dataclass used for every node boundary and edit
range, LineIndex for converting between positions and string offsets, and
TextBuffer for editing a document line by line.

Positions follow the editing surface's convention: ``row`` and ``column``
are both 0-indexed, and positions order lexicographically by (row, column).

Thread Safety:
Position is frozen (immutable) and safe to share across threads.
LineIndex is immutable after construction. TextBuffer is not thread-safe.

"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """A (row, column) coordinate in a text buffer.

    Attributes:
        row: Line number (0-indexed)
        column: Character offset within the line (0-indexed)

    Examples:
            >>> Position(0, 4) < Position(1, 0)
        True
            >>> str(Position(2, 7))
        '2:7'

    """

    row: int
    column: int

    def __str__(self) -> str:
        return f"{self.row}:{self.column}"

    def to_dict(self) -> dict[str, int]:
        """Return the wire shape ``{"row": ..., "column": ...}``."""
        return {"row": self.row, "column": self.column}

    @classmethod
    def from_dict(cls, data: dict[str, int]) -> Position:
        """Parse the wire shape produced by ``to_dict``.

        Raises:
            ValueError: If ``row`` or ``column`` is missing.
        """
        try:
            return cls(int(data["row"]), int(data["column"]))
        except KeyError as exc:
            msg = f"Position is missing {exc.args[0]!r}"
            raise ValueError(msg) from exc


ORIGIN = Position(0, 0)


def offset_pos(pos: Position, columns: int) -> Position:
    """Return ``pos`` moved ``columns`` characters along its row."""
    return Position(pos.row, pos.column + columns)


def end_of(start: Position, text: str) -> Position:
    """Return the position just past ``text`` when written at ``start``."""
    lines = text.split("\n")
    if len(lines) == 1:
        return Position(start.row, start.column + len(text))
    return Position(start.row + len(lines) - 1, len(lines[-1]))


class LineIndex:
    """Offset/position conversion for one text buffer.

    Stores the offset of every line start so both directions are
    O(log lines).

    Example:
        >>> index = LineIndex("ab\\ncd")
        >>> index.offset(Position(1, 1))
        4
        >>> index.position(4)
        Position(row=1, column=1)

    """

    __slots__ = ("_line_starts", "_text")

    def __init__(self, text: str) -> None:
        self._text = text
        starts = [0]
        find = text.find
        i = find("\n")
        while i != -1:
            starts.append(i + 1)
            i = find("\n", i + 1)
        self._line_starts = starts

    @property
    def text(self) -> str:
        return self._text

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def offset(self, pos: Position) -> int:
        """Convert a position to a string offset, clamped to the buffer."""
        if pos.row < 0:
            return 0
        if pos.row >= len(self._line_starts):
            return len(self._text)
        line_start = self._line_starts[pos.row]
        if pos.row + 1 < len(self._line_starts):
            line_end = self._line_starts[pos.row + 1] - 1
        else:
            line_end = len(self._text)
        return min(line_start + max(pos.column, 0), line_end)

    def position(self, offset: int) -> Position:
        """Convert a string offset to a position, clamped to the buffer."""
        offset = max(0, min(offset, len(self._text)))
        row = bisect_right(self._line_starts, offset) - 1
        return Position(row, offset - self._line_starts[row])

    def end(self) -> Position:
        """Position just past the last character."""
        return self.position(len(self._text))

    def slice(self, start: Position, end: Position) -> str:
        """Return the text between two positions."""
        return self._text[self.offset(start) : self.offset(end)]


class TextBuffer:
    """Editable text kept as a list of lines.

    Edits and slices cost what they touch rather than the whole buffer.
    The joined ``text`` is built on demand and cached until the next edit.
    Positions are clamped the same way ``LineIndex.offset`` clamps them.

    Example:
        >>> buffer = TextBuffer("ab\\ncd")
        >>> buffer.replace(Position(0, 1), Position(1, 1), "X")
        >>> buffer.text
        'aXd'

    """

    __slots__ = ("_lines", "_text")

    def __init__(self, text: str = "") -> None:
        self._lines = text.split("\n")
        self._text: str | None = text

    @property
    def text(self) -> str:
        if self._text is None:
            self._text = "\n".join(self._lines)
        return self._text

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def slice(self, start: Position, end: Position) -> str:
        """Return the text between two positions."""
        start_row, start_col = self._clamp(start)
        end_row, end_col = self._clamp(end)
        if (end_row, end_col) <= (start_row, start_col):
            return ""
        lines = self._lines
        if start_row == end_row:
            return lines[start_row][start_col:end_col]
        parts = [lines[start_row][start_col:]]
        parts.extend(lines[start_row + 1 : end_row])
        parts.append(lines[end_row][:end_col])
        return "\n".join(parts)

    def replace(self, start: Position, end: Position, text: str) -> None:
        """Replace the text between two positions with ``text``."""
        start_row, start_col = self._clamp(start)
        end_row, end_col = self._clamp(end)
        if (end_row, end_col) < (start_row, start_col):
            end_row, end_col = start_row, start_col
        lines = self._lines
        joined = lines[start_row][:start_col] + text + lines[end_row][end_col:]
        lines[start_row : end_row + 1] = joined.split("\n")
        self._text = None

    def _clamp(self, pos: Position) -> tuple[int, int]:
        lines = self._lines
        if pos.row < 0:
            return 0, 0
        if pos.row >= len(lines):
            return len(lines) - 1, len(lines[-1])
        return pos.row, min(max(pos.column, 0), len(lines[pos.row]))
