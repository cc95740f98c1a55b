"""Tests for text edit deltas."""

import pytest

from livedom.deltas import DeltaAction, EditDelta, deltas_between
from livedom.location import Position, TextBuffer


class TestConstructors:
    def test_insert_text(self) -> None:
        delta = EditDelta.insert(Position(2, 3), "abc")
        assert delta.action is DeltaAction.INSERT_TEXT
        assert delta.end == Position(2, 6)
        assert delta.is_insert
        assert delta.row_delta == 0

    def test_insert_lines(self) -> None:
        delta = EditDelta.insert(Position(2, 3), "ab\n\ncd")
        assert delta.action is DeltaAction.INSERT_LINES
        assert delta.lines == ("ab", "", "cd")
        assert delta.changed_text == "ab\n\ncd"
        assert delta.end == Position(4, 2)
        assert delta.row_delta == 2

    def test_remove(self) -> None:
        delta = EditDelta.remove(Position(0, 1), Position(1, 2), "x\nyz")
        assert delta.action is DeltaAction.REMOVE_LINES
        assert not delta.is_insert
        assert delta.changed_text == "x\nyz"


class TestWireFormat:
    def test_from_dict_text(self) -> None:
        delta = EditDelta.from_dict(
            {
                "range": {"start": {"row": 0, "column": 4}, "end": {"row": 0, "column": 5}},
                "action": "insertText",
                "text": "!",
            }
        )
        assert delta == EditDelta.insert(Position(0, 4), "!")

    def test_from_dict_lines(self) -> None:
        delta = EditDelta.from_dict(
            {
                "range": {"start": {"row": 1, "column": 0}, "end": {"row": 2, "column": 0}},
                "action": "removeLines",
                "lines": ["gone", ""],
            }
        )
        assert delta.action is DeltaAction.REMOVE_LINES
        assert delta.changed_text == "gone\n"

    def test_round_trip(self) -> None:
        for delta in (
            EditDelta.insert(Position(3, 1), "hello"),
            EditDelta.insert(Position(3, 1), "a\nb"),
            EditDelta.remove(Position(0, 0), Position(0, 2), "ab"),
        ):
            assert EditDelta.from_dict(delta.to_dict()) == delta

    def test_unknown_action(self) -> None:
        with pytest.raises(ValueError):
            EditDelta.from_dict(
                {
                    "range": {"start": {"row": 0, "column": 0}, "end": {"row": 0, "column": 0}},
                    "action": "teleport",
                    "text": "x",
                }
            )

    def test_missing_range(self) -> None:
        with pytest.raises(ValueError, match="range"):
            EditDelta.from_dict({"action": "insertText", "text": "x"})

    def test_missing_text(self) -> None:
        with pytest.raises(ValueError, match="neither"):
            EditDelta.from_dict(
                {
                    "range": {"start": {"row": 0, "column": 0}, "end": {"row": 0, "column": 1}},
                    "action": "insertText",
                }
            )


class TestApply:
    def test_insert(self) -> None:
        delta = EditDelta.insert(Position(1, 2), "XY")
        assert delta.apply("ab\ncd\nef") == "ab\ncdXY\nef"

    def test_insert_lines(self) -> None:
        delta = EditDelta.insert(Position(0, 1), "1\n2")
        assert delta.apply("ab") == "a1\n2b"

    def test_remove_across_lines(self) -> None:
        delta = EditDelta.remove(Position(0, 1), Position(1, 1), "b\nc")
        assert delta.apply("ab\ncd") == "ad"


class TestDeltasBetween:
    @pytest.mark.parametrize(
        ("old", "new"),
        [
            ("", ""),
            ("abc", "abc"),
            ("", "<p>x</p>"),
            ("<p>x</p>", ""),
            ("<p>hi</p>", "<p>hi!</p>"),
            ("<div>\n<p>a</p>\n</div>", "<div>\n<p>b</p>\n<p>c</p>\n</div>"),
            ("line one\nline two\nline three", "line one\nline three\nline four"),
        ],
    )
    def test_replay_reproduces_new_text(self, old: str, new: str) -> None:
        text = old
        for delta in deltas_between(old, new):
            text = delta.apply(text)
        assert text == new

    def test_identical_texts_give_no_deltas(self) -> None:
        assert deltas_between("<p>a</p>", "<p>a</p>") == []

    def test_single_insertion(self) -> None:
        assert deltas_between("<p>hi</p>", "<p>hi!</p>") == [EditDelta.insert(Position(0, 5), "!")]

    def test_large_document_with_two_small_changes(self) -> None:
        sections = [
            f'<section id="s{i}">\n  <p>paragraph {i}</p>\n</section>\n' for i in range(400)
        ]
        changed = list(sections)
        changed[10] = changed[10].replace("paragraph 10<", "paragraph 10!<")
        changed[300] = changed[300].replace("paragraph 300<", "paragraph 300!<")
        old, new = "".join(sections), "".join(changed)

        deltas = deltas_between(old, new)
        assert deltas == [
            EditDelta.insert(Position(31, 17), "!"),
            EditDelta.insert(Position(901, 18), "!"),
        ]

    def test_large_replaced_block_is_not_refined(self) -> None:
        old, new = "<p>" + "a" * 2000 + "</p>\n", "<p>" + "b" * 2000 + "</p>\n"
        deltas = deltas_between(old, new)
        assert [delta.is_insert for delta in deltas] == [False, True]
        text = old
        for delta in deltas:
            text = delta.apply(text)
        assert text == new


class TestApplyTo:
    def test_matches_apply(self) -> None:
        text = "<ul>\n<li>a</li>\n</ul>"
        buffer = TextBuffer(text)
        for delta in [
            EditDelta.insert(Position(1, 10), "\n<li>b</li>"),
            EditDelta.remove(Position(1, 4), Position(1, 5), "a"),
            EditDelta.insert(Position(2, 5), "c"),
        ]:
            text = delta.apply(text)
            delta.apply_to(buffer)
            assert buffer.text == text
        assert text == "<ul>\n<li></li>\n<li>bc</li>\n</ul>"
