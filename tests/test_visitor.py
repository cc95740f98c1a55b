"""Tests for the tree visitor."""

from livedom.builder import build
from livedom.nodes import Node
from livedom.visitor import BaseVisitor


class _Recorder(BaseVisitor[None]):
    def __init__(self) -> None:
        self.seen: list[tuple[str, int]] = []

    def visit_document(self, node: Node) -> None:
        self.seen.append(("document", node.tag_id))

    def visit_element(self, node: Node) -> None:
        self.seen.append((node.tag, node.tag_id))

    def visit_text(self, node: Node) -> None:
        self.seen.append(("text", node.tag_id))


class _Counter(BaseVisitor[int]):
    def __init__(self) -> None:
        self.count = 0

    def visit_default(self, node: Node) -> int:
        self.count += 1
        return self.count


def _root(text: str) -> Node:
    root = build(text).root
    assert root is not None
    return root


class TestBaseVisitor:
    def test_document_order(self) -> None:
        recorder = _Recorder()
        recorder.visit(_root("<div><p>a<b>b</b></p>c</div>"))
        assert recorder.seen == [
            ("div", 1),
            ("p", 2),
            ("text", -5),
            ("b", 3),
            ("text", -7),
            ("text", -4),
        ]

    def test_synthetic_root_dispatches_to_visit_document(self) -> None:
        recorder = _Recorder()
        recorder.visit(_root("<p>a</p><p>b</p>"))
        assert recorder.seen[0] == ("document", 0)
        assert [name for name, _ in recorder.seen].count("p") == 2

    def test_default_fallback(self) -> None:
        counter = _Counter()
        assert counter.visit(_root("<div><p>a</p></div>")) == 1
        assert counter.count == 3

    def test_base_returns_none(self) -> None:
        assert BaseVisitor().visit(_root("<p>x</p>")) is None
