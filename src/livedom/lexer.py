"""Tag-boundary tokenizer for HTML source.

Finds tag boundaries, attributes, comments, doctypes and raw-text element
bodies. It does not validate HTML: nesting is the builder's job, and
anything that is not recognisably markup is passed through as text.

No regex in the hot path; every step advances the scan position.

Thread Safety:
Tokenizer instances are single-use. Create one per source string.
All state is instance-local; no shared mutable state.

"""

from __future__ import annotations

from collections.abc import Iterator

from livedom.config import RAW_TEXT_ELEMENTS
from livedom.errors import ParseError
from livedom.location import LineIndex
from livedom.tokens import Token, TokenType

_WHITESPACE = frozenset(" \t\n\r\f")
_TAG_NAME_END = frozenset(" \t\n\r\f/>")
_ATTR_NAME_END = frozenset(" \t\n\r\f/>=")
_UNQUOTED_END = frozenset(" \t\n\r\f>")


class Tokenizer:
    """Single-pass scanner producing tag-boundary tokens.

    Usage:
            >>> for token in Tokenizer('<p class="a">hi</p>').tokenize():
            ...     print(token)
        Token(OPEN_TAG, 'p', 0:2)
        Token(ATTRIBUTE, 'class', 3:12)
        Token(OPEN_TAG_END, '>', 12:13)
        Token(TEXT, 'hi', 13:15)
        Token(CLOSE_TAG, 'p', 15:19)
        Token(EOF, '', 19:19)

    Raises:
        ParseError: From ``tokenize()`` when a tag, comment or quoted
            attribute value is left unterminated.

    """

    __slots__ = ("_line_index", "_pos", "_raw_text_elements", "_source", "_source_len")

    def __init__(
        self,
        source: str,
        raw_text_elements: frozenset[str] = RAW_TEXT_ELEMENTS,
    ) -> None:
        self._source = source
        self._source_len = len(source)
        self._pos = 0
        self._raw_text_elements = raw_text_elements
        self._line_index: LineIndex | None = None

    def tokenize(self) -> Iterator[Token]:
        """Yield tokens until end of input, finishing with EOF."""
        source = self._source
        while self._pos < self._source_len:
            lt = source.find("<", self._pos)
            if lt == -1:
                yield Token(TokenType.TEXT, source[self._pos :], self._pos, self._source_len)
                self._pos = self._source_len
                break
            if lt > self._pos:
                yield Token(TokenType.TEXT, source[self._pos : lt], self._pos, lt)
                self._pos = lt
            yield from self._scan_markup()
        yield Token(TokenType.EOF, "", self._source_len, self._source_len)

    # =========================================================================
    # Markup dispatch
    # =========================================================================

    def _scan_markup(self) -> Iterator[Token]:
        """Scan the construct starting at the ``<`` under the cursor."""
        source = self._source
        start = self._pos
        nxt = source[start + 1 : start + 2]

        if source.startswith("<!--", start):
            end = source.find("-->", start + 4)
            if end == -1:
                raise self._error("Unterminated comment", start)
            self._pos = end + 3
            yield Token(TokenType.COMMENT, source[start : self._pos], start, self._pos)
            return

        if nxt in ("!", "?"):
            end = source.find(">", start + 2)
            if end == -1:
                raise self._error("Unterminated declaration", start)
            self._pos = end + 1
            yield Token(TokenType.DOCTYPE, source[start : self._pos], start, self._pos)
            return

        if nxt == "/" and source[start + 2 : start + 3].isalpha():
            yield self._scan_close_tag()
            return

        if nxt.isalpha():
            yield from self._scan_open_tag()
            return

        # A lone "<" is text.
        self._pos = start + 1
        yield Token(TokenType.TEXT, "<", start, start + 1)

    def _scan_close_tag(self) -> Token:
        source = self._source
        start = self._pos
        name_end = self._scan_until(start + 2, _TAG_NAME_END)
        name = source[start + 2 : name_end]
        gt = source.find(">", name_end)
        if gt == -1:
            raise self._error(f"Unterminated closing tag </{name}", start)
        self._pos = gt + 1
        return Token(TokenType.CLOSE_TAG, name.lower(), start, self._pos)

    def _scan_open_tag(self) -> Iterator[Token]:
        source = self._source
        start = self._pos
        name_end = self._scan_until(start + 1, _TAG_NAME_END)
        name = source[start + 1 : name_end].lower()
        yield Token(TokenType.OPEN_TAG, name, start, name_end)
        self._pos = name_end

        while True:
            self._pos = self._skip_whitespace(self._pos)
            if self._pos >= self._source_len:
                raise self._error(f"Unterminated tag <{name}", start)
            ch = source[self._pos]
            if ch == ">":
                self._pos += 1
                yield Token(TokenType.OPEN_TAG_END, ">", self._pos - 1, self._pos)
                if name in self._raw_text_elements:
                    yield from self._scan_raw_text(name)
                return
            if ch == "/":
                if source.startswith("/>", self._pos):
                    self._pos += 2
                    yield Token(TokenType.SELF_CLOSING_END, "/>", self._pos - 2, self._pos)
                    return
                self._pos += 1
                continue
            yield self._scan_attribute(name, start)

    def _scan_attribute(self, tag_name: str, tag_start: int) -> Token:
        source = self._source
        attr_start = self._pos
        name_end = self._scan_until(attr_start + 1, _ATTR_NAME_END)
        attr_name = source[attr_start:name_end].lower()

        after_name = self._skip_whitespace(name_end)
        if after_name >= self._source_len or source[after_name] != "=":
            self._pos = name_end
            return Token(TokenType.ATTRIBUTE, attr_name, attr_start, name_end)

        value_start = self._skip_whitespace(after_name + 1)
        if value_start >= self._source_len:
            raise self._error(f"Unterminated tag <{tag_name}", tag_start)

        quote = source[value_start]
        if quote in ('"', "'"):
            close = source.find(quote, value_start + 1)
            if close == -1:
                raise self._error(f"Unterminated attribute value for {attr_name!r}", value_start)
            value = source[value_start + 1 : close]
            self._pos = close + 1
        else:
            value_end = self._scan_until(value_start, _UNQUOTED_END)
            value = source[value_start:value_end]
            self._pos = value_end

        return Token(TokenType.ATTRIBUTE, attr_name, attr_start, self._pos, attr_value=value)

    def _scan_raw_text(self, name: str) -> Iterator[Token]:
        """Emit the body of a raw-text element up to its closing tag."""
        start = self._pos
        closing = f"</{name}"
        end = self._source.lower().find(closing, start)
        if end == -1:
            end = self._source_len
        if end > start:
            yield Token(TokenType.TEXT, self._source[start:end], start, end)
        self._pos = end

    # =========================================================================
    # Helpers
    # =========================================================================

    def _scan_until(self, pos: int, stop: frozenset[str]) -> int:
        source = self._source
        length = self._source_len
        while pos < length and source[pos] not in stop:
            pos += 1
        return pos

    def _skip_whitespace(self, pos: int) -> int:
        source = self._source
        length = self._source_len
        while pos < length and source[pos] in _WHITESPACE:
            pos += 1
        return pos

    def _error(self, message: str, offset: int) -> ParseError:
        if self._line_index is None:
            self._line_index = LineIndex(self._source)
        pos = self._line_index.position(offset)
        return ParseError(message, pos.row, pos.column)
