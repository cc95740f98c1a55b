"""Instrumented text output.

Writes every element's tag id into the source as the reserved attribute,
right after the tag name, so the renderer's copy of the document carries
the same identities as the local tree:

    <div><p>hi</p></div>  ->  <div data-livedom-id="1"><p data-livedom-id="2">hi</p></div>

Nothing else in the text changes. The synthetic document root has no tag
in the source and is never instrumented. Reparsing the output with
``EmbeddedIdPolicy`` yields the same tree, ids included.

"""

from __future__ import annotations

from livedom.config import SyncConfig, resolve_config
from livedom.location import LineIndex
from livedom.nodes import Node, Snapshot
from livedom.visitor import BaseVisitor


class _InsertionCollector(BaseVisitor[None]):
    """Collects (offset, attribute text) pairs in document order."""

    def __init__(self, index: LineIndex, attribute: str) -> None:
        self._index = index
        self._attribute = attribute
        self.insertions: list[tuple[int, str]] = []

    def visit_element(self, node: Node) -> None:
        # Just past "<" + tag name.
        offset = self._index.offset(node.start_pos) + 1 + len(node.tag)
        self.insertions.append((offset, f' {self._attribute}="{node.tag_id}"'))


def generate_instrumented_html(
    tree: Snapshot | Node,
    text: str,
    *,
    config: SyncConfig | None = None,
) -> str:
    """Return ``text`` with each element's tag id injected.

    Args:
        tree: Snapshot (or root node) whose boundaries describe ``text``
        text: The source text
        config: Sync configuration (``id_attribute`` names the attribute)

    """
    config = resolve_config(config)
    root = tree.root if isinstance(tree, Snapshot) else tree
    collector = _InsertionCollector(LineIndex(text), config.id_attribute)
    collector.visit(root)

    parts: list[str] = []
    last = 0
    for offset, attribute in sorted(collector.insertions, key=lambda item: item[0]):
        parts.append(text[last:offset])
        parts.append(attribute)
        last = offset
    parts.append(text[last:])
    return "".join(parts)
