"""Tests for the position tracker."""

from livedom.builder import build
from livedom.deltas import EditDelta
from livedom.location import Position
from livedom.nodes import Node, walk
from livedom.tracker import shift_position, shift_positions


def _root(text: str) -> Node:
    root = build(text).root
    assert root is not None
    return root


def _spans(root: Node) -> list[tuple[int, Position, Position]]:
    return [(node.tag_id, node.start_pos, node.end_pos) for node in walk(root)]


class TestShiftPosition:
    def test_insert_before_is_unchanged(self) -> None:
        delta = EditDelta.insert(Position(1, 5), "abc")
        assert shift_position(Position(1, 4), delta) == Position(1, 4)
        assert shift_position(Position(0, 9), delta) == Position(0, 9)

    def test_insert_at_or_after_on_same_row(self) -> None:
        delta = EditDelta.insert(Position(1, 5), "abc")
        assert shift_position(Position(1, 5), delta) == Position(1, 8)
        assert shift_position(Position(1, 9), delta) == Position(1, 12)

    def test_insert_later_row_is_unchanged_without_newlines(self) -> None:
        delta = EditDelta.insert(Position(1, 5), "abc")
        assert shift_position(Position(2, 0), delta) == Position(2, 0)

    def test_multi_line_insert(self) -> None:
        delta = EditDelta.insert(Position(1, 5), "ab\ncd")
        assert delta.end == Position(2, 2)
        assert shift_position(Position(1, 7), delta) == Position(2, 4)
        assert shift_position(Position(3, 1), delta) == Position(4, 1)

    def test_removal(self) -> None:
        delta = EditDelta.remove(Position(1, 5), Position(1, 8), "abc")
        assert shift_position(Position(1, 5), delta) == Position(1, 5)
        assert shift_position(Position(1, 6), delta) == Position(1, 5)
        assert shift_position(Position(1, 8), delta) == Position(1, 5)
        assert shift_position(Position(1, 10), delta) == Position(1, 7)
        assert shift_position(Position(2, 3), delta) == Position(2, 3)

    def test_multi_line_removal(self) -> None:
        delta = EditDelta.remove(Position(1, 5), Position(3, 2), "x\ny\nzz")
        assert shift_position(Position(2, 9), delta) == Position(1, 5)
        assert shift_position(Position(3, 4), delta) == Position(1, 7)
        assert shift_position(Position(5, 0), delta) == Position(3, 0)


class TestShiftPositions:
    def test_single_line_insert(self) -> None:
        root = _root("<div><p>hi</p><p>yo</p></div>")
        shift_positions(root, EditDelta.insert(Position(0, 10), "!"))

        p1, p2 = root.children
        assert root.end_pos == Position(0, 30)
        assert (p1.start_pos, p1.end_pos) == (Position(0, 5), Position(0, 15))
        assert p1.children[0].end_pos == Position(0, 11)
        assert (p2.start_pos, p2.end_pos) == (Position(0, 15), Position(0, 24))

    def test_insert_newline_moves_rest_of_row_down(self) -> None:
        root = _root("<div><p>hi</p><p>yo</p></div>")
        shift_positions(root, EditDelta.insert(Position(0, 10), "\n"))

        p1, p2 = root.children
        assert p1.end_pos == Position(1, 4)
        assert p2.start_pos == Position(1, 4)
        assert root.end_pos == Position(1, 19)

    def test_unaffected_rows_are_not_visited(self) -> None:
        root = _root("<ul>\n<li>a</li>\n<li>b</li>\n</ul>")
        before = _spans(root)
        visited = shift_positions(root, EditDelta.insert(Position(1, 5), "x"))

        assert visited == 4
        li1, li2 = root.children[1], root.children[3]
        assert li1.end_pos == Position(1, 11)
        assert li2.start_pos == Position(2, 0)
        assert root.end_pos == before[0][2]

    def test_removal(self) -> None:
        root = _root("<div><p>hello</p></div>")
        shift_positions(root, EditDelta.remove(Position(0, 10), Position(0, 12), "ll"))

        p = root.children[0]
        assert p.children[0].start_pos == Position(0, 8)
        assert p.children[0].end_pos == Position(0, 11)
        assert p.end_pos == Position(0, 15)
        assert root.end_pos == Position(0, 21)

    def test_removed_range_collapses(self) -> None:
        root = _root("<div><p>a</p><p>b</p></div>")
        shift_positions(root, EditDelta.remove(Position(0, 5), Position(0, 13), "<p>a</p>"))

        p1, p2 = root.children
        assert (p1.start_pos, p1.end_pos) == (Position(0, 5), Position(0, 5))
        assert p1.children[0].start_pos == Position(0, 5)
        assert (p2.start_pos, p2.end_pos) == (Position(0, 5), Position(0, 13))

    def test_multi_line_removal(self) -> None:
        root = _root("<div>\n<p>a</p>\n</div>")
        shift_positions(root, EditDelta.remove(Position(0, 5), Position(1, 0), "\n"))

        p = root.children[1]
        assert (p.start_pos, p.end_pos) == (Position(0, 5), Position(0, 13))
        assert root.children[2].start_pos == Position(0, 13)
        assert root.end_pos == Position(1, 6)

    def test_ids_and_count_never_change(self) -> None:
        root = _root("<div>\n<p>a</p><p>b</p>\n</div>")
        ids = [node.tag_id for node in walk(root)]
        shift_positions(root, EditDelta.insert(Position(1, 4), "xyz\n\n"))
        assert [node.tag_id for node in walk(root)] == ids

    def test_edit_after_tree_changes_nothing(self) -> None:
        root = _root("<p>a</p>\n")
        before = _spans(root)
        shift_positions(root, EditDelta.insert(Position(1, 0), "tail"))
        assert _spans(root) == before
