"""
livedom: incremental structural sync for live HTML editing

Keeps a tree of an HTML document in step with its source text while it is
being edited, and computes the minimal edits a rendered copy of the
document needs to follow along. Every element and text run carries a
stable integer id that survives small edits.

Quick Start:
    >>> from livedom import EditDelta, LiveDocument, Position
    >>> doc = LiveDocument("<div><p>hi</p></div>")
    >>> doc.instrumented_html()
    '<div data-livedom-id="1"><p data-livedom-id="2">hi</p></div>'
    >>> result = doc.apply_delta(EditDelta.insert(Position(0, 10), "!"))
    >>> [edit.to_dict() for edit in result.edits]
    [{'op': 'setText', 'tagID': -5, 'content': 'hi!'}]

Lower-level pieces:
    >>> from livedom import build, diff_trees
    >>> old = build("<ul><li>a</li></ul>").snapshot
    >>> new = build("<ul><li>a</li><li>b</li></ul>").snapshot
    >>> [edit.op.value for edit in diff_trees(old, new)]
    ['insert', 'insert']

Installation:
    pip install livedom              # Zero runtime dependencies
"""

from livedom.builder import Builder, BuildResult, build
from livedom.classifier import UpdateMode, classify_edit, is_dangerous_edit
from livedom.config import (
    SyncConfig,
    get_sync_config,
    reset_sync_config,
    set_sync_config,
    sync_config_context,
)
from livedom.deltas import DeltaAction, EditDelta, deltas_between
from livedom.differ import Edit, EditOp, diff_trees
from livedom.document import LiveDocument
from livedom.errors import LiveDomError, ParseError, SubtreeSwapError
from livedom.ids import (
    EmbeddedIdPolicy,
    FreshIdPolicy,
    IdentityPolicy,
    IdGenerator,
    PositionLookup,
    PreservingIdPolicy,
)
from livedom.instrumentation import generate_instrumented_html
from livedom.lexer import Tokenizer
from livedom.location import LineIndex, Position, TextBuffer
from livedom.nodes import Node, NodeKind, Snapshot, text_node_id, walk
from livedom.profiling import UpdateAccumulator, get_update_accumulator, profiled_updates
from livedom.query import enclosing_node, node_at, tag_id_at, tree_lookup
from livedom.reconciler import ReconcileResult, reconcile
from livedom.serialization import (
    edits_from_json,
    edits_to_json,
    node_from_dict,
    node_to_dict,
    snapshot_from_json,
    snapshot_to_json,
)
from livedom.tokens import Token, TokenType
from livedom.tracker import shift_positions
from livedom.updater import UpdateResult, update_tree
from livedom.visitor import BaseVisitor

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Session
    "LiveDocument",
    # Location
    "LineIndex",
    "Position",
    "TextBuffer",
    # Tree
    "Node",
    "NodeKind",
    "Snapshot",
    "text_node_id",
    "walk",
    # Builder + identity
    "Builder",
    "BuildResult",
    "build",
    "EmbeddedIdPolicy",
    "FreshIdPolicy",
    "IdentityPolicy",
    "IdGenerator",
    "PositionLookup",
    "PreservingIdPolicy",
    # Tokenizer
    "Token",
    "TokenType",
    "Tokenizer",
    # Edits to the text
    "DeltaAction",
    "EditDelta",
    "deltas_between",
    "shift_positions",
    "UpdateMode",
    "classify_edit",
    "is_dangerous_edit",
    # Updates
    "UpdateResult",
    "update_tree",
    # Differ
    "Edit",
    "EditOp",
    "diff_trees",
    # Reconciler
    "ReconcileResult",
    "reconcile",
    # Queries
    "enclosing_node",
    "node_at",
    "tag_id_at",
    "tree_lookup",
    # Instrumentation
    "generate_instrumented_html",
    # Visitor
    "BaseVisitor",
    # Serialization
    "edits_from_json",
    "edits_to_json",
    "node_from_dict",
    "node_to_dict",
    "snapshot_from_json",
    "snapshot_to_json",
    # Profiling
    "UpdateAccumulator",
    "get_update_accumulator",
    "profiled_updates",
    # Configuration (ContextVar-based)
    "SyncConfig",
    "get_sync_config",
    "reset_sync_config",
    "set_sync_config",
    "sync_config_context",
    # Errors
    "LiveDomError",
    "ParseError",
    "SubtreeSwapError",
]
