"""livedom UpdateAccumulator: opt-in profiling for tree updates.

This module provides accumulated metrics across updates:
- Number of updates, split by path (incremental / full)
- Fallbacks from the incremental path to a full reparse
- Characters reparsed and edits emitted

Zero overhead when disabled (get_update_accumulator() returns None).

Example:
    from livedom import LiveDocument
    from livedom.profiling import profiled_updates

    doc = LiveDocument("<div><p>hi</p></div>")
    doc.scan()

    with profiled_updates() as metrics:
        doc.set_text("<div><p>hi!</p></div>")

    print(metrics.summary())
    # {"total_ms": 0.4, "updates": 1, "incremental": 0, "full": 1, ...}

"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any


@dataclass
class UpdateAccumulator:
    """Accumulated metrics during tree updates.

    Attributes:
        start_time: Profiling start timestamp.
        updates: Number of updates recorded.
        incremental: Updates completed on the incremental path.
        full: Updates completed on the full path (including failed builds).
        fallbacks: Incremental attempts that fell back to a full reparse.
        reparsed_chars: Characters handed to the builder.
        edits: Edit operations emitted.
        nodes_shifted: Nodes visited by the position tracker.

    """

    start_time: float = field(default_factory=perf_counter)
    updates: int = 0
    incremental: int = 0
    full: int = 0
    fallbacks: int = 0
    reparsed_chars: int = 0
    edits: int = 0
    nodes_shifted: int = 0

    def record_update(self, *, incremental: bool, reparsed_chars: int, edits: int) -> None:
        """Record a completed update.

        Args:
            incremental: True if the incremental path produced the result.
            reparsed_chars: Length of the text the builder parsed.
            edits: Number of edit operations in the result.

        """
        self.updates += 1
        if incremental:
            self.incremental += 1
        else:
            self.full += 1
        self.reparsed_chars += reparsed_chars
        self.edits += edits

    def record_fallback(self) -> None:
        self.fallbacks += 1

    def record_shift(self, visited: int) -> None:
        self.nodes_shifted += visited

    @property
    def total_duration_ms(self) -> float:
        """Total profiling duration in milliseconds."""
        return (perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        """Get summary of update metrics."""
        return {
            "total_ms": round(self.total_duration_ms, 2),
            "updates": self.updates,
            "incremental": self.incremental,
            "full": self.full,
            "fallbacks": self.fallbacks,
            "reparsed_chars": self.reparsed_chars,
            "edits": self.edits,
            "nodes_shifted": self.nodes_shifted,
        }


# Module-level ContextVar
_accumulator: ContextVar[UpdateAccumulator | None] = ContextVar(
    "update_accumulator",
    default=None,
)


def get_update_accumulator() -> UpdateAccumulator | None:
    """Get current accumulator (None if profiling disabled)."""
    return _accumulator.get()


@contextmanager
def profiled_updates() -> Iterator[UpdateAccumulator]:
    """Context manager for profiled updates.

    Creates an UpdateAccumulator and makes it available via
    get_update_accumulator() for the duration of the with block.

    Yields:
        UpdateAccumulator that will be populated during updates.

    """
    acc = UpdateAccumulator()
    token: Token[UpdateAccumulator | None] = _accumulator.set(acc)
    try:
        yield acc
    finally:
        _accumulator.reset(token)
