"""Concurrent component graph walker.

A fixed pool of asyncio worker tasks drains a shared FIFO frontier of
component references.  Each popped reference is handed to an injected
``expand`` coroutine which fetches the descriptor, merges it into the graph
and returns the references discovered for the first time; those are pushed
back onto the frontier.

Termination: every reference put on the frontier is marked done only after
its expansion finished and its discovered references were enqueued, so the
frontier's unfinished-task count is exactly "queued + in flight".  The walk is
over when that count reaches zero (``asyncio.Queue.join``).

Failures of single expansions are recorded and the walk keeps draining the
frontier; ``walk`` raises one ``WalkError`` aggregating all of them at the
end.  A ``ConfigurationError`` is fatal: no further expansions are started
and it is re-raised once in-flight work has finished.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog

from ocmvector.errors import ConfigurationError, OCMVectorError
from ocmvector.models.components import ComponentReference
from ocmvector.observability.metrics import (
    component_expansion_duration_seconds,
    component_expansions_total,
    walk_frontier_size,
)

_log = structlog.get_logger(component="walk.walker")

ExpandFunc = Callable[[ComponentReference], Awaitable[list[ComponentReference]]]

_DEFAULT_WORKERS = 10


class WalkCancelledError(OCMVectorError):
    """The walk was stopped before every discovered component was expanded."""

    def __init__(self, skipped: list[ComponentReference]) -> None:
        names = ", ".join(str(ref) for ref in skipped)
        super().__init__(f"walk cancelled, {len(skipped)} component(s) not expanded: [{names}]")
        self.skipped = skipped


class ComponentExpansionError(OCMVectorError):
    """Expanding a single component failed."""

    def __init__(self, component: ComponentReference, cause: BaseException) -> None:
        super().__init__(f"failed to process component reference: {component}: {cause}")
        self.component = component
        self.cause = cause


class WalkError(OCMVectorError):
    """One or more components could not be expanded.

    The graph is still usable but incomplete.
    """

    def __init__(self, errors: list[OCMVectorError]) -> None:
        joined = "\n".join(str(err) for err in errors)
        super().__init__(f"errors occurred during walking components:\n{joined}")
        self.errors = errors

    @property
    def failed_components(self) -> list[ComponentReference]:
        return [err.component for err in self.errors if isinstance(err, ComponentExpansionError)]


class ComponentWalker:
    """Breadth-first, concurrent expansion of a component graph.

    Args:
        expand:  Coroutine function fetching and merging one component and
                 returning newly discovered references.
        workers: Number of concurrent worker tasks.
    """

    def __init__(self, expand: ExpandFunc, workers: int = _DEFAULT_WORKERS) -> None:
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self._expand = expand
        self._workers = workers
        self._stop = asyncio.Event()
        self._scheduled: set[ComponentReference] = set()
        self._errors: list[ComponentExpansionError] = []
        self._fatal: ConfigurationError | None = None
        self._skipped: list[ComponentReference] = []
        self._expanded = 0

    @property
    def expanded_count(self) -> int:
        """Number of successful expansions of the last walk."""
        return self._expanded

    def stop(self) -> None:
        """Request a clean shutdown: in-flight expansions finish, no new ones start.

        A request made before ``walk`` applies to the next walk; the request is
        cleared when a walk ends.
        """
        if not self._stop.is_set():
            _log.info("walk stop requested")
            self._stop.set()

    async def walk(self, root: ComponentReference, *roots: ComponentReference) -> None:
        """Expand *root* (and further *roots*) and everything reachable from them.

        Raises:
            ConfigurationError: an expansion reported inconsistent input data.
            WalkError: some expansions failed or the walk was stopped early.
        """
        self._scheduled.clear()
        self._errors.clear()
        self._skipped.clear()
        self._fatal = None
        self._expanded = 0

        frontier: asyncio.Queue[ComponentReference] = asyncio.Queue()
        for ref in (root, *roots):
            self._push(frontier, ref)

        started = time.monotonic()
        tasks = [asyncio.create_task(self._worker(frontier), name=f"component-walker-{i}") for i in range(self._workers)]
        try:
            await frontier.join()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            walk_frontier_size.set(0)
            self._stop.clear()

        _log.info(
            "walk finished",
            expanded=self._expanded,
            failed=len(self._errors),
            skipped=len(self._skipped),
            duration_ms=int((time.monotonic() - started) * 1000),
        )

        if self._fatal is not None:
            raise self._fatal
        errors: list[OCMVectorError] = list(self._errors)
        if self._skipped:
            errors.append(WalkCancelledError(list(self._skipped)))
        if errors:
            raise WalkError(errors)

    def _push(self, frontier: asyncio.Queue[ComponentReference], ref: ComponentReference) -> None:
        if ref in self._scheduled:
            return
        self._scheduled.add(ref)
        frontier.put_nowait(ref)
        walk_frontier_size.set(frontier.qsize())
        _log.debug("added component to queue", component=str(ref))

    async def _worker(self, frontier: asyncio.Queue[ComponentReference]) -> None:
        while True:
            ref = await frontier.get()
            walk_frontier_size.set(frontier.qsize())
            try:
                if self._stop.is_set():
                    self._skipped.append(ref)
                    component_expansions_total.labels(outcome="skipped").inc()
                    continue
                discovered = await self._expand_one(ref)
                for new_ref in discovered:
                    self._push(frontier, new_ref)
            finally:
                frontier.task_done()

    async def _expand_one(self, ref: ComponentReference) -> list[ComponentReference]:
        started = time.monotonic()
        try:
            discovered = await self._expand(ref)
        except ConfigurationError as exc:
            component_expansions_total.labels(outcome="error").inc()
            _log.error("fatal configuration error", component=str(ref), error=str(exc))
            if self._fatal is None:
                self._fatal = exc
            self.stop()
            return []
        except Exception as exc:
            component_expansions_total.labels(outcome="error").inc()
            _log.warning("component expansion failed", component=str(ref), error=str(exc))
            self._errors.append(ComponentExpansionError(ref, exc))
            return []
        finally:
            component_expansion_duration_seconds.observe(time.monotonic() - started)

        component_expansions_total.labels(outcome="success").inc()
        self._expanded += 1
        return discovered
