"""Computations: the re-runnable units behind effects and memos.

A Computation records every source it reads during a run. Before each
re-run it drops all of its previous edges, so the dependency set always
reflects the most recent run only. Sources read before a callback raises
stay subscribed.

Every computation is also an Owner: primitives created while it runs are
adopted and disposed before its next run, and cleanups registered with
on_cleanup() run at the same time.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from reactix._tracking import CHECK, CLEAN, DIRTY, Runtime, current_runtime, get_runtime
from reactix.errors import CyclicDependencyError

logger = logging.getLogger("reactix.computation")


def _name(fn: Callable) -> str:
    return getattr(fn, "__name__", repr(fn))


def _detach(child) -> None:
    """Drop a disposing child from its owner's bookkeeping."""
    if child._owner is not None:
        child._owner._release(child)
        child._owner = None


class Owner:
    """Owns child primitives and cleanup callbacks, and tears them down together."""

    __slots__ = ("_runtime", "_owner", "_owned", "_cleanups", "_disposed")

    def __init__(self, runtime: Runtime, *, detached: bool = False) -> None:
        self._runtime = runtime
        self._owner: Owner | None = None
        # dict keys: creation order, and O(1) release when a child disposes itself
        self._owned: dict = {}
        self._cleanups: list[Callable[[], Any]] = []
        self._disposed = False
        parent = runtime.owner
        if parent is not None and not detached:
            parent._adopt(self)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _adopt(self, child) -> None:
        self._owned[child] = None
        child._owner = self

    def _release(self, child) -> None:
        self._owned.pop(child, None)

    def _add_cleanup(self, fn: Callable[[], Any]) -> None:
        self._cleanups.append(fn)

    def _clean_up(self) -> None:
        """Dispose owned children, then run cleanups newest first.

        Every child and cleanup runs even if one raises; the first error is
        re-raised afterwards and later ones are logged.
        """
        owned, self._owned = self._owned, {}
        cleanups, self._cleanups = self._cleanups, []
        steps = [child.dispose for child in owned]
        steps.extend(reversed(cleanups))

        error = None
        for step in steps:
            try:
                step()
            except Exception as exc:
                if error is None:
                    error = exc
                else:
                    logger.exception("Another error while cleaning up %r", self)
        if error is not None:
            raise error

    def dispose(self) -> None:
        """Tear down everything this owner created. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        _detach(self)
        self._clean_up()


class Computation(Owner):
    """Shared behavior of Effect and Memo: track, clean up, re-run."""

    __slots__ = ("_fn", "_sources", "_state")

    def __init__(self, fn: Callable[[], Any], runtime: Runtime | None = None) -> None:
        super().__init__(runtime if runtime is not None else get_runtime())
        self._fn = fn
        # Insertion-ordered so CHECK refreshes sources in read order.
        self._sources: dict = {}
        self._state = DIRTY

    def _track(self, source) -> None:
        """Record a read. Reading the same source twice adds one edge."""
        if source not in self._sources:
            self._sources[source] = None
            source._observers[self] = None

    def _untrack_all(self) -> None:
        for source in self._sources:
            source._remove_observer(self)
        self._sources = {}

    def _mark(self, state: int) -> None:
        if state > self._state:
            self._state = state

    def _dependents(self) -> list[Computation]:
        """Computations that read this one. Only memos have any."""
        return []

    def _settle(self) -> None:
        """Called by the propagation pass once per queued computation."""
        self._refresh()

    def _refresh(self) -> None:
        """Bring this computation up to date, re-running only if needed."""
        if self._disposed:
            return
        if self._state == CHECK:
            for source in list(self._sources):
                source._refresh()
                if self._state == DIRTY:
                    break
            else:
                self._state = CLEAN
        if self._state == DIRTY:
            self._update()

    def _update(self) -> None:
        """Re-run and publish the result. Subclasses define what publishing means."""
        raise NotImplementedError

    def _execute(self) -> Any:
        """Drop old edges and owned children, then run the callback tracked."""
        runtime = self._runtime
        if runtime.is_running(self):
            logger.debug("Cycle detected at %r", self)
            raise CyclicDependencyError(f"{self!r} re-entered its own execution")

        # Edges go first so writes made by cleanups cannot re-trigger this node.
        self._untrack_all()
        self._clean_up()
        self._state = CLEAN

        token = current_runtime.set(runtime)
        try:
            with runtime.frame(self, self):
                return self._fn()
        finally:
            current_runtime.reset(token)

    def dispose(self) -> None:
        """Disconnect from all sources. Later notifications are no-ops."""
        if self._disposed:
            return
        self._untrack_all()
        logger.debug("Disposing %r", self)
        super().dispose()
