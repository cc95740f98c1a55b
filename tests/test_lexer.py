"""Tests for the tag-boundary tokenizer."""

import pytest

from livedom.errors import ParseError
from livedom.lexer import Tokenizer
from livedom.tokens import Token, TokenType


def _types(source: str) -> list[TokenType]:
    return [token.type for token in Tokenizer(source).tokenize()]


def _tokens(source: str) -> list[Token]:
    return list(Tokenizer(source).tokenize())


class TestTags:
    def test_simple_element(self) -> None:
        tokens = _tokens('<p class="a">hi</p>')
        assert [(t.type, t.value, t.start, t.end) for t in tokens] == [
            (TokenType.OPEN_TAG, "p", 0, 2),
            (TokenType.ATTRIBUTE, "class", 3, 12),
            (TokenType.OPEN_TAG_END, ">", 12, 13),
            (TokenType.TEXT, "hi", 13, 15),
            (TokenType.CLOSE_TAG, "p", 15, 19),
            (TokenType.EOF, "", 19, 19),
        ]
        assert tokens[1].attr_value == "a"

    def test_names_are_lower_cased(self) -> None:
        tokens = _tokens('<DIV Class="X"></Div>')
        assert tokens[0].value == "div"
        assert tokens[1].value == "class"
        assert tokens[1].attr_value == "X"
        assert tokens[3].value == "div"

    def test_self_closing(self) -> None:
        assert _types("<br/>") == [
            TokenType.OPEN_TAG,
            TokenType.SELF_CLOSING_END,
            TokenType.EOF,
        ]

    def test_attribute_forms(self) -> None:
        tokens = _tokens("<input disabled value=abc title='it' data-x = \"y\">")
        attrs = [(t.value, t.attr_value) for t in tokens if t.type is TokenType.ATTRIBUTE]
        assert attrs == [("disabled", ""), ("value", "abc"), ("title", "it"), ("data-x", "y")]

    def test_attribute_value_may_contain_gt(self) -> None:
        tokens = _tokens('<a title="1 > 0">x</a>')
        assert tokens[1].attr_value == "1 > 0"
        assert tokens[2].type is TokenType.OPEN_TAG_END


class TestNonTags:
    def test_comment(self) -> None:
        tokens = _tokens("a<!-- <p> -->b")
        assert [t.type for t in tokens] == [
            TokenType.TEXT,
            TokenType.COMMENT,
            TokenType.TEXT,
            TokenType.EOF,
        ]
        assert tokens[1].value == "<!-- <p> -->"

    def test_doctype(self) -> None:
        assert _types("<!DOCTYPE html><html></html>")[0] is TokenType.DOCTYPE

    def test_lone_lt_is_text(self) -> None:
        tokens = _tokens("a < b")
        assert all(t.type is TokenType.TEXT for t in tokens[:-1])
        assert "".join(t.value for t in tokens[:-1]) == "a < b"

    def test_raw_text_body(self) -> None:
        tokens = _tokens("<script>if (a<b) { x = '</p>'; }</script>")
        text = [t for t in tokens if t.type is TokenType.TEXT]
        assert len(text) == 1
        assert text[0].value == "if (a<b) { x = '</p>'; }"
        assert tokens[-2].type is TokenType.CLOSE_TAG

    def test_offsets_are_contiguous(self) -> None:
        source = '<!doctype html>\n<div id="a">x<!--c--><br/>y</div>'
        tokens = _tokens(source)
        covered = 0
        for token in tokens:
            if token.type in (TokenType.ATTRIBUTE,):
                continue
            assert token.start >= covered
            covered = token.end
        assert covered == len(source)


class TestErrors:
    def test_unterminated_comment(self) -> None:
        with pytest.raises(ParseError, match="Unterminated comment"):
            _tokens("<p><!-- never")

    def test_unterminated_tag_reports_position(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            _tokens("<div>\n  <p class")
        assert exc_info.value.row == 1
        assert exc_info.value.column == 2

    def test_unterminated_quote(self) -> None:
        with pytest.raises(ParseError, match="attribute value"):
            _tokens('<p class="a>hi</p>')


class TestTokenRepr:
    def test_repr_truncates(self) -> None:
        token = Token(TokenType.TEXT, "x" * 30, 0, 30)
        assert repr(token) == f"Token(TEXT, '{'x' * 17}...', 0:30)"
