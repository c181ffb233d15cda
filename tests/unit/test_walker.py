"""Unit tests for ComponentWalker scheduling, failure and cancellation.

The walker is driven by fake expand coroutines over an in-memory adjacency
map so that scheduling can be observed without any descriptors.
"""

from __future__ import annotations

import asyncio
from collections import Counter

import pytest

from ocmvector.errors import ConfigurationError, DescriptorError
from ocmvector.models.components import ComponentReference
from ocmvector.walk import ComponentExpansionError, ComponentWalker, WalkCancelledError, WalkError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ref(name: str) -> ComponentReference:
    return ComponentReference(name=f"example.com/{name}", version="v1.0.0")


class _FakeTree:
    """Adjacency map plus bookkeeping of expand calls."""

    def __init__(self, edges: dict[str, list[str]], delay: float = 0.0) -> None:
        self.edges = {_ref(k): [_ref(v) for v in vs] for k, vs in edges.items()}
        self.delay = delay
        self.calls: Counter[ComponentReference] = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    async def expand(self, ref: ComponentReference) -> list[ComponentReference]:
        self.calls[ref] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        return list(self.edges.get(ref, []))


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


class TestScheduling:
    async def test_expands_every_reachable_component(self) -> None:
        tree = _FakeTree({"root": ["a", "b"], "a": ["c"], "b": [], "c": []})
        walker = ComponentWalker(tree.expand, workers=4)
        await walker.walk(_ref("root"))
        assert set(tree.calls) == {_ref("root"), _ref("a"), _ref("b"), _ref("c")}
        assert walker.expanded_count == 4

    async def test_shared_child_expanded_once(self) -> None:
        # root -> a -> shared, root -> c -> shared
        tree = _FakeTree({"root": ["a", "c"], "a": ["shared"], "c": ["shared"]}, delay=0.01)
        walker = ComponentWalker(tree.expand, workers=8)
        await walker.walk(_ref("root"))
        assert tree.calls[_ref("shared")] == 1
        assert all(count == 1 for count in tree.calls.values())

    async def test_cycle_terminates(self) -> None:
        tree = _FakeTree({"root": ["a"], "a": ["root", "a"]})
        walker = ComponentWalker(tree.expand, workers=2)
        await asyncio.wait_for(walker.walk(_ref("root")), timeout=5.0)
        assert tree.calls == Counter({_ref("root"): 1, _ref("a"): 1})

    async def test_multiple_roots_share_the_schedule(self) -> None:
        tree = _FakeTree({"r1": ["shared"], "r2": ["shared"]})
        walker = ComponentWalker(tree.expand, workers=3)
        await walker.walk(_ref("r1"), _ref("r2"), _ref("r1"))
        assert tree.calls == Counter({_ref("r1"): 1, _ref("r2"): 1, _ref("shared"): 1})

    async def test_workers_run_concurrently_within_bound(self) -> None:
        tree = _FakeTree({"root": [f"child-{i}" for i in range(20)]}, delay=0.02)
        walker = ComponentWalker(tree.expand, workers=5)
        await walker.walk(_ref("root"))
        assert 1 < tree.max_in_flight <= 5

    async def test_single_worker(self) -> None:
        tree = _FakeTree({"root": ["a", "b"], "a": ["b"]})
        walker = ComponentWalker(tree.expand, workers=1)
        await walker.walk(_ref("root"))
        assert tree.max_in_flight == 1
        assert len(tree.calls) == 3

    async def test_walker_is_reusable(self) -> None:
        tree = _FakeTree({"root": ["a"]})
        walker = ComponentWalker(tree.expand, workers=2)
        await walker.walk(_ref("root"))
        await walker.walk(_ref("root"))
        assert tree.calls[_ref("root")] == 2

    def test_rejects_zero_workers(self) -> None:
        with pytest.raises(ValueError, match="workers must be >= 1"):
            ComponentWalker(_FakeTree({}).expand, workers=0)


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    async def test_failed_expansion_is_aggregated(self) -> None:
        tree = _FakeTree({"root": ["broken", "sibling"], "sibling": ["leaf"]})

        async def expand(ref: ComponentReference) -> list[ComponentReference]:
            if ref == _ref("broken"):
                raise DescriptorError("no such descriptor")
            return await tree.expand(ref)

        walker = ComponentWalker(expand, workers=3)
        with pytest.raises(WalkError) as exc_info:
            await walker.walk(_ref("root"))

        err = exc_info.value
        assert err.failed_components == [_ref("broken")]
        assert isinstance(err.errors[0], ComponentExpansionError)
        assert "example.com/broken:v1.0.0" in str(err)
        assert "no such descriptor" in str(err)
        assert set(tree.calls) == {_ref("root"), _ref("sibling"), _ref("leaf")}

    async def test_unexpected_exception_is_recorded_not_raised(self) -> None:
        async def expand(ref: ComponentReference) -> list[ComponentReference]:
            raise RuntimeError("boom")

        walker = ComponentWalker(expand, workers=2)
        with pytest.raises(WalkError) as exc_info:
            await walker.walk(_ref("root"))
        assert isinstance(exc_info.value.errors[0], ComponentExpansionError)
        assert isinstance(exc_info.value.errors[0].cause, RuntimeError)  # type: ignore[attr-defined]

    async def test_configuration_error_is_fatal(self) -> None:
        tree = _FakeTree({"root": ["bad", "x1", "x2", "x3"]}, delay=0.01)

        async def expand(ref: ComponentReference) -> list[ComponentReference]:
            if ref == _ref("bad"):
                raise ConfigurationError("non-unique kubernetes component")
            return await tree.expand(ref)

        walker = ComponentWalker(expand, workers=1)
        with pytest.raises(ConfigurationError, match="non-unique"):
            await walker.walk(_ref("root"))
        # single worker: everything queued after the fatal error is skipped
        assert set(tree.calls) == {_ref("root")}


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestStop:
    async def test_stop_skips_queued_components(self) -> None:
        tree = _FakeTree({"root": ["a", "b"], "a": ["c"]})
        walker: ComponentWalker

        async def expand(ref: ComponentReference) -> list[ComponentReference]:
            result = await tree.expand(ref)
            if ref == _ref("root"):
                walker.stop()
            return result

        walker = ComponentWalker(expand, workers=2)
        with pytest.raises(WalkError) as exc_info:
            await asyncio.wait_for(walker.walk(_ref("root")), timeout=5.0)

        (cancelled,) = exc_info.value.errors
        assert isinstance(cancelled, WalkCancelledError)
        assert sorted(cancelled.skipped, key=str) == [_ref("a"), _ref("b")]
        assert set(tree.calls) == {_ref("root")}

    async def test_stop_before_walk_is_honoured_once(self) -> None:
        tree = _FakeTree({"root": ["a"]})
        walker = ComponentWalker(tree.expand, workers=2)
        # a signal can arrive after the handlers are installed but before walk() starts
        walker.stop()
        with pytest.raises(WalkError) as exc_info:
            await walker.walk(_ref("root"))
        (cancelled,) = exc_info.value.errors
        assert isinstance(cancelled, WalkCancelledError)
        assert cancelled.skipped == [_ref("root")]
        assert not tree.calls

        await walker.walk(_ref("root"))
        assert set(tree.calls) == {_ref("root"), _ref("a")}
