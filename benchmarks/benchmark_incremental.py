"""Benchmark incremental updates vs full reparse.

Compares the incremental path (reparse one element) with a forced full
reparse for a one-character edit in a large document.

Run with:
    pytest benchmarks/benchmark_incremental.py -v --benchmark-only
"""

import pytest

from livedom import EditDelta, IdGenerator, LineIndex, Snapshot, build, update_tree


def _typing_edit(document: str) -> tuple[EditDelta, str]:
    """Insert one character inside the text of a paragraph halfway down."""
    offset = document.index("paragraph 100") + len("paragraph")
    delta = EditDelta.insert(LineIndex(document).position(offset), "x")
    return delta, delta.apply(document)


def _previous(document: str) -> Snapshot:
    snapshot = build(document).snapshot
    assert snapshot is not None
    return snapshot


@pytest.mark.benchmark(group="update")
def test_benchmark_incremental_update(benchmark, large_document):
    """Benchmark the incremental path for a 1-char edit in a large doc."""
    delta, new_text = _typing_edit(large_document)

    def setup():
        return (_previous(large_document),), {}

    def incremental_update(previous):
        result = update_tree(previous, new_text, delta, generator=IdGenerator())
        assert result.incremental

    benchmark.pedantic(incremental_update, setup=setup, rounds=50)


@pytest.mark.benchmark(group="update")
def test_benchmark_full_update(benchmark, large_document):
    """Benchmark a forced full reparse of the same edit (baseline for ratio)."""
    delta, new_text = _typing_edit(large_document)

    def setup():
        return (_previous(large_document),), {}

    def full_update(previous):
        result = update_tree(
            previous, new_text, delta, generator=IdGenerator(), force_full=True
        )
        assert not result.incremental

    benchmark.pedantic(full_update, setup=setup, rounds=50)


@pytest.mark.benchmark(group="update")
def test_benchmark_initial_build(benchmark, large_document):
    """Benchmark building the tree from scratch."""
    benchmark(build, large_document)
