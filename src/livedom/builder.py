"""Structural builder: text to identified node tree.

Consumes the tokenizer's tag-boundary tokens and assembles a Node tree with
correct nesting and positions. Element ids come from a pluggable identity
policy (see ``livedom.ids``); text ids are derived from sibling position.

The builder handles the parts of HTML nesting needed to find tag
boundaries and nothing more:

- void elements never take children;
- ``<x/>`` closes any element immediately;
- elements with optional end tags (``li``, ``p``, ``td``, ...) are closed
  by the openers that close them in HTML, by their parent's end tag, and by
  the end of the text.

Anything else that does not balance is a ParseError. Errors are returned,
not raised, so the caller can keep its last valid tree.

Example:
    >>> result = build("<div><p>hi</p></div>")
    >>> result.root.tag, result.root.children[0].tag
    ('div', 'p')

"""

from __future__ import annotations

import html
from dataclasses import dataclass

from livedom.config import SyncConfig, resolve_config
from livedom.errors import ParseError
from livedom.ids import FreshIdPolicy, IdentityPolicy, IdGenerator
from livedom.lexer import Tokenizer
from livedom.location import ORIGIN, LineIndex, Position
from livedom.nodes import DOCUMENT_ID, DOCUMENT_TAG, Node, Snapshot, text_node_id
from livedom.tokens import Token, TokenType
from livedom.utils.logger import get_logger

logger = get_logger(__name__)

_CLOSES_P = frozenset({"p"})

# Opening tag -> open elements it implicitly closes
IMPLIED_CLOSE: dict[str, frozenset[str]] = {
    "li": frozenset({"li"}),
    "dt": frozenset({"dd", "dt"}),
    "dd": frozenset({"dd", "dt"}),
    "rb": frozenset({"rb", "rt", "rtc", "rp"}),
    "rt": frozenset({"rb", "rt", "rp"}),
    "rtc": frozenset({"rb", "rt", "rtc", "rp"}),
    "rp": frozenset({"rb", "rt", "rp"}),
    "optgroup": frozenset({"optgroup", "option"}),
    "option": frozenset({"option"}),
    "thead": frozenset({"tbody", "tfoot", "tr", "td", "th"}),
    "tbody": frozenset({"thead", "tbody", "tfoot", "tr", "td", "th"}),
    "tfoot": frozenset({"thead", "tbody", "tr", "td", "th"}),
    "tr": frozenset({"tr", "td", "th"}),
    "td": frozenset({"td", "th"}),
    "th": frozenset({"td", "th"}),
    **{
        tag: _CLOSES_P
        for tag in (
            "address", "article", "aside", "blockquote", "details", "dir", "div",
            "dl", "fieldset", "figcaption", "figure", "footer", "form", "h1",
            "h2", "h3", "h4", "h5", "h6", "header", "hgroup", "hr", "main",
            "menu", "nav", "ol", "p", "pre", "section", "table", "ul",
        )
    },
}

# Elements whose end tag may be omitted
OPTIONAL_END: frozenset[str] = frozenset(
    {
        "body", "caption", "colgroup", "dd", "dt", "head", "html", "li",
        "optgroup", "option", "p", "rb", "rp", "rt", "rtc", "tbody", "td",
        "tfoot", "th", "thead", "tr",
    }
)


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Outcome of one build.

    Attributes:
        snapshot: The tree and its node map, or None when the text could
            not be resolved into balanced tags
        errors: Parse errors (non-empty exactly when ``snapshot`` is None)

    """

    snapshot: Snapshot | None
    errors: tuple[ParseError, ...] = ()

    @property
    def ok(self) -> bool:
        return self.snapshot is not None

    @property
    def root(self) -> Node | None:
        return self.snapshot.root if self.snapshot is not None else None


class Builder:
    """Builds a Node tree from one span of text.

    Args:
        text: The text to parse (a whole document or one element's span)
        start_pos: Document position of ``text[0]``, so node positions are
            absolute even when only a span is parsed
        policy: Identity policy for element ids (fresh ids if None)
        config: Sync configuration (active context config if None)

    Thread Safety:
        Builder instances are single-use. Create one per build.

    """

    __slots__ = (
        "_config",
        "_line_index",
        "_policy",
        "_stack",
        "_start_pos",
        "_text",
        "_top_level",
    )

    def __init__(
        self,
        text: str,
        *,
        start_pos: Position = ORIGIN,
        policy: IdentityPolicy | None = None,
        config: SyncConfig | None = None,
    ) -> None:
        self._text = text
        self._start_pos = start_pos
        self._policy = policy if policy is not None else FreshIdPolicy(IdGenerator())
        self._config = resolve_config(config)
        self._line_index = LineIndex(text)
        self._stack: list[Node] = []
        self._top_level: list[Node] = []

    def build(self) -> BuildResult:
        """Parse the text. Never raises ParseError; see ``BuildResult.errors``."""
        try:
            root = self._build()
        except ParseError as exc:
            logger.debug("Build failed: %s", exc)
            return BuildResult(snapshot=None, errors=(exc,))
        return BuildResult(snapshot=Snapshot.from_root(root))

    def _build(self) -> Node:
        current: Node | None = None  # element whose opening tag is being read
        tokens = Tokenizer(self._text, self._config.raw_text_elements).tokenize()

        for token in tokens:
            token_type = token.type
            if token_type is TokenType.OPEN_TAG:
                current = self._open_element(token)
            elif token_type is TokenType.ATTRIBUTE:
                # First occurrence of a repeated attribute wins, as in HTML.
                if current is not None and token.value not in current.attributes:
                    current.attributes[token.value] = html.unescape(token.attr_value)
            elif token_type is TokenType.OPEN_TAG_END:
                if current is not None:
                    self._finish_opening_tag(current, token, self_closing=False)
                current = None
            elif token_type is TokenType.SELF_CLOSING_END:
                if current is not None:
                    self._finish_opening_tag(current, token, self_closing=True)
                current = None
            elif token_type is TokenType.CLOSE_TAG:
                self._close_tag(token)
            elif token_type is TokenType.TEXT:
                self._add_text(token)
            elif token_type is TokenType.EOF:
                self._close_at_end(token)

        return self._make_root()

    # =========================================================================
    # Elements
    # =========================================================================

    def _open_element(self, token: Token) -> Node:
        closes = IMPLIED_CLOSE.get(token.value)
        if closes:
            start = self._pos(token.start)
            while self._stack and self._stack[-1].tag in closes:
                self._pop(start)

        node = Node.element(token.value, start_pos=self._pos(token.start))
        node.parent = self._stack[-1] if self._stack else None
        return node

    def _finish_opening_tag(self, node: Node, token: Token, *, self_closing: bool) -> None:
        node.tag_id = self._policy.assign(node)
        parent = node.parent
        if parent is not None:
            parent.children.append(node)
        else:
            self._top_level.append(node)

        if self_closing or node.tag in self._config.void_elements:
            node.end_pos = self._pos(token.end)
            node.update(self._config.signature_length)
        else:
            self._stack.append(node)

    def _close_tag(self, token: Token) -> None:
        tag = token.value
        if tag in self._config.void_elements:
            return

        stack = self._stack
        for depth in range(len(stack) - 1, -1, -1):
            if stack[depth].tag == tag:
                break
            if stack[depth].tag not in OPTIONAL_END:
                depth = -1
                break
        else:
            depth = -1

        if depth == -1:
            pos = self._pos(token.start)
            raise ParseError(f"Unmatched closing tag </{tag}>", pos.row, pos.column)

        implied_end = self._pos(token.start)
        while len(stack) - 1 > depth:
            self._pop(implied_end)
        self._pop(self._pos(token.end), explicit=True)

    def _close_at_end(self, token: Token) -> None:
        end = self._pos(token.end)
        while self._stack:
            node = self._stack[-1]
            if node.tag not in OPTIONAL_END:
                raise ParseError(
                    f"Unclosed tag <{node.tag}>", node.start_pos.row, node.start_pos.column
                )
            self._pop(end)

    def _pop(self, end_pos: Position, *, explicit: bool = False) -> None:
        node = self._stack.pop()
        node.end_pos = end_pos
        node.implicit_end = not explicit
        node.update(self._config.signature_length)

    # =========================================================================
    # Text
    # =========================================================================

    def _add_text(self, token: Token) -> None:
        parent = self._stack[-1] if self._stack else None
        siblings = parent.children if parent is not None else self._top_level
        raw_text = parent is not None and parent.tag in self._config.raw_text_elements
        content = token.value if raw_text else html.unescape(token.value)

        previous = siblings[-1] if siblings else None
        if previous is not None and previous.is_text():
            previous.content += content
            previous.end_pos = self._pos(token.end)
            previous.update(self._config.signature_length)
            return

        node = Node.text(
            content,
            tag_id=text_node_id(parent, previous),
            start_pos=self._pos(token.start),
            end_pos=self._pos(token.end),
        )
        node.parent = parent
        siblings.append(node)
        node.update(self._config.signature_length)

    # =========================================================================
    # Root
    # =========================================================================

    def _make_root(self) -> Node:
        significant = [
            node for node in self._top_level if node.is_element() or node.content.strip()
        ]
        if len(significant) == 1 and significant[0].is_element():
            return significant[0]

        root = Node.element(
            DOCUMENT_TAG,
            tag_id=DOCUMENT_ID,
            start_pos=self._start_pos,
            end_pos=self._pos(len(self._text)),
        )
        for node in self._top_level:
            root.append(node)
        root.update(self._config.signature_length)
        return root

    def _pos(self, offset: int) -> Position:
        """Absolute document position of an offset into the parsed text."""
        local = self._line_index.position(offset)
        start = self._start_pos
        if local.row == 0:
            return Position(start.row, start.column + local.column)
        return Position(start.row + local.row, local.column)


def build(
    text: str,
    *,
    start_pos: Position = ORIGIN,
    policy: IdentityPolicy | None = None,
    generator: IdGenerator | None = None,
    config: SyncConfig | None = None,
) -> BuildResult:
    """Parse text into an identified tree.

    Args:
        text: Source text
        start_pos: Document position of ``text[0]``
        policy: Identity policy (defaults to fresh ids from ``generator``)
        generator: Id sequence for the default policy (a new one if None)
        config: Sync configuration

    Returns:
        BuildResult with the snapshot or the parse errors

    """
    if policy is None:
        policy = FreshIdPolicy(generator if generator is not None else IdGenerator())
    return Builder(text, start_pos=start_pos, policy=policy, config=config).build()
