"""Tests for instrumented text output."""

from edit_replay import tree_shape
from livedom.builder import build
from livedom.config import SyncConfig, sync_config_context
from livedom.deltas import EditDelta
from livedom.document import LiveDocument
from livedom.ids import EmbeddedIdPolicy, IdGenerator
from livedom.instrumentation import generate_instrumented_html
from livedom.location import Position


def _instrument(text: str, config: SyncConfig | None = None) -> str:
    result = build(text, config=config)
    assert result.snapshot is not None
    return generate_instrumented_html(result.snapshot, text, config=config)


class TestGenerateInstrumentedHtml:
    def test_nested(self) -> None:
        assert _instrument("<div><p>hi</p></div>") == (
            '<div data-livedom-id="1"><p data-livedom-id="2">hi</p></div>'
        )

    def test_attributes_and_void_elements(self) -> None:
        assert _instrument('<div class="a"><img src=x><br/></div>') == (
            '<div data-livedom-id="1" class="a"><img data-livedom-id="2" src=x>'
            '<br data-livedom-id="3"/></div>'
        )

    def test_upper_case_tag_names(self) -> None:
        assert _instrument("<DIV></DIV>") == '<DIV data-livedom-id="1"></DIV>'

    def test_multiple_lines(self) -> None:
        assert _instrument("<ul>\n  <li>a</li>\n</ul>") == (
            '<ul data-livedom-id="1">\n  <li data-livedom-id="2">a</li>\n</ul>'
        )

    def test_synthetic_root_is_not_instrumented(self) -> None:
        assert _instrument("<p>a</p>\n<p>b</p>") == (
            '<p data-livedom-id="1">a</p>\n<p data-livedom-id="2">b</p>'
        )

    def test_accepts_root_node(self) -> None:
        text = "<b>x</b>"
        root = build(text).root
        assert root is not None
        assert generate_instrumented_html(root, text) == '<b data-livedom-id="1">x</b>'

    def test_custom_attribute(self) -> None:
        config = SyncConfig(id_attribute="data-sync-id")
        assert _instrument("<p>x</p>", config) == '<p data-sync-id="1">x</p>'

    def test_attribute_from_context(self) -> None:
        with sync_config_context(SyncConfig(id_attribute="data-x")):
            assert _instrument("<p>x</p>") == '<p data-x="1">x</p>'


class TestRoundTrip:
    def test_reparse_recovers_ids(self) -> None:
        text = '<div id="main">\n  <p>one <b>two</b></p>\n  <ul><li>a<li>b</ul>\n</div>'
        snapshot = build(text).snapshot
        assert snapshot is not None
        instrumented = generate_instrumented_html(snapshot, text)
        reparsed = build(
            instrumented, policy=EmbeddedIdPolicy(IdGenerator(), "data-livedom-id")
        ).snapshot
        assert reparsed is not None
        assert tree_shape(reparsed.root) == tree_shape(snapshot.root)

    def test_ids_after_edits(self) -> None:
        doc = LiveDocument("<div><p>a</p></div>")
        doc.apply_delta(EditDelta.insert(Position(0, 5), "<b>x</b>"))
        html = doc.instrumented_html()
        assert html == (
            '<div data-livedom-id="1"><b data-livedom-id="3">x</b>'
            '<p data-livedom-id="2">a</p></div>'
        )
        reparsed = build(html, policy=EmbeddedIdPolicy(IdGenerator(), "data-livedom-id"))
        assert reparsed.snapshot is not None and doc.snapshot is not None
        assert tree_shape(reparsed.snapshot.root) == tree_shape(doc.snapshot.root)
