"""Tree visitor for livedom nodes.

Provides a base visitor class with match-based dispatch over node kinds.

Example, collecting every element id:

    class IdCollector(BaseVisitor[None]):
        def __init__(self) -> None:
            self.ids: list[int] = []

        def visit_element(self, node: Node) -> None:
            self.ids.append(node.tag_id)

    collector = IdCollector()
    collector.visit(snapshot.root)

Thread Safety:
    Visitors are NOT shared across threads by default (they may accumulate
    mutable state). Create a new visitor per thread.

"""

from typing import Generic, TypeVar

from livedom.nodes import Node, NodeKind

T = TypeVar("T")


class BaseVisitor(Generic[T]):
    """Base tree visitor with match-based dispatch.

    Subclass and override ``visit_*`` methods for the node kinds you care
    about. Unhandled kinds fall through to ``visit_default``. Children are
    walked automatically after the ``visit_*`` call, in document order.

    Type parameter ``T`` is the return type of visit methods (use ``None``
    for side-effect-only visitors).

    """

    def visit(self, node: Node) -> T:
        """Dispatch to the appropriate ``visit_*`` method, then walk children."""
        result = self._dispatch(node)
        for child in node.children:
            self.visit(child)
        return result

    def visit_default(self, node: Node) -> T:
        """Called for node kinds without a specific ``visit_*`` override.

        Default returns None (suitable for ``BaseVisitor[None]``).

        """
        return None  # type: ignore[return-value]

    def visit_document(self, node: Node) -> T:
        """The synthetic root wrapping a document with several top-level nodes."""
        return self.visit_default(node)

    def visit_element(self, node: Node) -> T:
        return self.visit_default(node)

    def visit_text(self, node: Node) -> T:
        return self.visit_default(node)

    def _dispatch(self, node: Node) -> T:
        match node:
            case Node(kind=NodeKind.TEXT):
                return self.visit_text(node)
            case Node(kind=NodeKind.ELEMENT) if node.is_synthetic:
                return self.visit_document(node)
            case Node(kind=NodeKind.ELEMENT):
                return self.visit_element(node)
            case _:
                return self.visit_default(node)
