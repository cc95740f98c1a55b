"""Tests for livedom.reconciler: drift detection against the renderer's tree."""

import pytest

from edit_replay import replay, tree_shape
from livedom.builder import build
from livedom.errors import ParseError
from livedom.nodes import Snapshot
from livedom.reconciler import reconcile


def _local(text: str = "<div><p>hi</p></div>") -> Snapshot:
    result = build(text)
    assert result.snapshot is not None
    return result.snapshot


def _corrected(result, local: Snapshot) -> bool:
    """Applying the corrective edits to the observed root yields the local tree."""
    observed = result.observed.get(local.root.tag_id) if result.root_matched else None
    start = observed if observed is not None else result.observed.root
    return replay(start, result.edits) == tree_shape(local.root)


# =========================================================================
# In sync
# =========================================================================


class TestInSync:
    def test_wrapped_in_html_and_body(self) -> None:
        local = _local()
        result = reconcile(
            local,
            '<html><body><div data-livedom-id="1"><p data-livedom-id="2">hi</p></div>'
            "</body></html>",
        )
        assert result.root_matched
        assert result.in_sync
        assert result.edits == ()

    def test_renderer_ids_never_collide_with_local_ones(self) -> None:
        local = _local()
        result = reconcile(
            local,
            '<html><body><div data-livedom-id="1"><p data-livedom-id="2">hi</p></div>'
            "</body></html>",
        )
        html = result.observed.root
        body = html.children[0]
        assert html.tag == "html" and body.tag == "body"
        assert min(html.tag_id, body.tag_id) > local.max_id()

    def test_serialized_tree_with_comments_and_split_text(self) -> None:
        local = _local()
        observed = {
            "_type": "Element",
            "tag": "HTML",
            "children": [
                {
                    "_type": "Element",
                    "tag": "BODY",
                    "children": [
                        {
                            "_type": "Element",
                            "tag": "DIV",
                            "attributes": {"data-livedom-id": "1"},
                            "children": [
                                {
                                    "_type": "Element",
                                    "tag": "P",
                                    "attributes": {"data-livedom-id": "2"},
                                    "children": [
                                        {"_type": "Text", "content": "h"},
                                        {"_type": "Comment"},
                                        {"_type": "Text", "content": "i"},
                                    ],
                                }
                            ],
                        }
                    ],
                }
            ],
        }
        result = reconcile(local, observed)
        assert result.root_matched
        assert result.in_sync

    def test_several_top_level_elements_inside_body(self) -> None:
        local = _local("<h1>a</h1><p>b</p>")
        assert local.root.is_synthetic
        observed = (
            '<html><head></head><body><h1 data-livedom-id="1">a</h1>'
            '<p data-livedom-id="2">b</p></body></html>'
        )
        result = reconcile(local, observed)
        assert result.root_matched
        assert result.in_sync

    def test_node_tree_with_resolved_ids(self) -> None:
        local = _local()
        observed = build("<div><p>hi</p></div>").root
        assert observed is not None
        assert reconcile(local, observed).in_sync


# =========================================================================
# Drift
# =========================================================================


class TestDrift:
    def test_changed_text_and_injected_element(self) -> None:
        local = _local()
        result = reconcile(
            local,
            '<div data-livedom-id="1"><p data-livedom-id="2">changed</p><em>x</em></div>',
        )
        assert not result.in_sync
        assert [edit.to_dict() for edit in result.edits] == [
            {"op": "setText", "tagID": -5, "content": "hi"},
            {"op": "delete", "tagID": 3},
        ]
        assert _corrected(result, local)

    def test_injected_attribute(self) -> None:
        local = _local()
        result = reconcile(
            local, '<div data-livedom-id="1" class="x"><p data-livedom-id="2">hi</p></div>'
        )
        assert [edit.to_dict() for edit in result.edits] == [
            {"op": "removeAttribute", "tagID": 1, "name": "class"}
        ]

    def test_missing_element(self) -> None:
        local = _local("<ul><li>a</li><li>b</li></ul>")
        result = reconcile(local, '<ul data-livedom-id="1"><li data-livedom-id="2">a</li></ul>')
        assert [edit.op.value for edit in result.edits] == ["insert", "insert"]
        assert result.edits[0].tag_id == 3
        assert _corrected(result, local)

    def test_duplicated_id(self) -> None:
        local = _local()
        result = reconcile(
            local,
            '<div data-livedom-id="1"><p data-livedom-id="2">hi</p>'
            '<p data-livedom-id="2">hi</p></div>',
        )
        assert [edit.to_dict() for edit in result.edits] == [{"op": "delete", "tagID": 3}]
        assert _corrected(result, local)

    def test_top_level_element_missing_from_body(self) -> None:
        local = _local("<h1>a</h1><p>b</p>")
        result = reconcile(local, '<html><body><h1 data-livedom-id="1">a</h1></body></html>')
        assert result.root_matched
        assert [(edit.op.value, edit.tag_id, edit.parent_id) for edit in result.edits] == [
            ("insert", 2, None),
            ("insert", -5, 2),
        ]
        assert result.edits[0].index == 1

    def test_local_root_not_found(self) -> None:
        local = _local()
        result = reconcile(local, "<section>x</section>")
        assert not result.root_matched
        assert result.observed.root.tag_id == 3
        assert result.edits[-1].to_dict() == {"op": "delete", "tagID": 3}
        assert _corrected(result, local)

    def test_same_id_different_tag_is_not_a_match(self) -> None:
        local = _local()
        result = reconcile(local, '<section data-livedom-id="1"></section>')
        assert not result.root_matched
        assert _corrected(result, local)


# =========================================================================
# Errors
# =========================================================================


class TestErrors:
    def test_unbalanced_html(self) -> None:
        with pytest.raises(ParseError):
            reconcile(_local(), "<div><span></div>")

    def test_text_root(self) -> None:
        with pytest.raises(ValueError, match="element"):
            reconcile(_local(), {"_type": "Text", "content": "x"})

    def test_malformed_dict(self) -> None:
        with pytest.raises(ValueError):
            reconcile(_local(), {"tag": "div"})
