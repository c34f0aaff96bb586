"""Dependency tracking engine, the heart of reactix.

A Runtime owns the tracking stack: every frame records which computation
is listening for reads and which owner adopts newly created primitives.
Reading a signal while a listener is on top of the stack registers the
dependency edge in both directions.

Propagation is synchronous. A write marks every reachable computation
(direct subscribers DIRTY, computations behind a memo CHECK), then settles
them in discovery order. A CHECK node refreshes its memo sources first and
only re-runs if one of them actually changed, so memos settle before any
consumer observes them and each memo recomputes at most once per write.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterator, Union

if TYPE_CHECKING:
    from reactix.computation import Computation, Owner

logger = logging.getLogger("reactix.runtime")

# Computation states, ordered by staleness.
CLEAN = 0
CHECK = 1
DIRTY = 2

Equals = Union[Callable[[Any, Any], bool], bool]


def default_equals(old: Any, new: Any) -> bool:
    """Identity or equality. Used when no ``equals`` is given."""
    return old is new or old == new


def is_equal(equals: Equals, old: Any, new: Any) -> bool:
    """Apply an ``equals`` policy. ``False`` means values never compare equal."""
    if equals is False:
        return False
    return equals(old, new)


class Runtime:
    """One reactive world: a tracking stack plus the policies shared by its primitives.

    ``equals`` is the default equality for signals and memos created without
    one. ``eager_memos=False`` switches memos to lazy-on-read: they skip the
    initial run and recompute on the next read after an upstream write.
    """

    __slots__ = ("equals", "eager_memos", "_stack")

    def __init__(self, equals: Equals = default_equals, eager_memos: bool = True) -> None:
        self.equals = equals
        self.eager_memos = eager_memos
        self._stack: list[tuple[Computation | None, Owner | None]] = []

    @property
    def listener(self) -> Computation | None:
        """The computation that reads are attributed to, if any."""
        return self._stack[-1][0] if self._stack else None

    @property
    def owner(self) -> Owner | None:
        """The owner that adopts primitives created right now, if any."""
        return self._stack[-1][1] if self._stack else None

    @contextmanager
    def frame(self, listener: Computation | None, owner: Owner | None) -> Iterator[None]:
        """Push a tracking frame for the duration of the block."""
        self._stack.append((listener, owner))
        try:
            yield
        finally:
            self._stack.pop()

    def is_running(self, node: Owner) -> bool:
        """True if ``node`` is executing somewhere on the current call stack."""
        return any(owner is node for _, owner in self._stack)

    def track_read(self, source: Any) -> None:
        """Attribute a read of ``source`` to the current listener."""
        listener = self.listener
        if listener is not None and not listener._disposed:
            listener._track(source)

    def propagate(self, source: Any) -> None:
        """Run a complete propagation pass for a write to ``source``."""
        queue: list[Computation] = []
        seen: set[Computation] = set()

        for observer in list(source._observers):
            observer._mark(DIRTY)
            if observer not in seen:
                seen.add(observer)
                queue.append(observer)

        # Breadth-first: whatever sits behind a memo may or may not be stale.
        index = 0
        while index < len(queue):
            node = queue[index]
            index += 1
            for observer in node._dependents():
                observer._mark(CHECK)
                if observer not in seen:
                    seen.add(observer)
                    queue.append(observer)

        if not queue:
            return
        logger.debug("Propagating %r to %d computation(s)", source, len(queue))
        for node in queue:
            node._settle()

    def __repr__(self) -> str:
        policy = "eager" if self.eager_memos else "lazy"
        return f"Runtime(memos={policy}, depth={len(self._stack)})"


_default_runtime = Runtime()

# The runtime new primitives bind to. Computations re-enter their own
# runtime while they execute, so primitives created inside follow along.
current_runtime: contextvars.ContextVar[Runtime] = contextvars.ContextVar(
    "current_runtime", default=_default_runtime
)


def get_runtime() -> Runtime:
    """The runtime that primitives created right now will belong to."""
    return current_runtime.get()


def set_runtime(runtime: Runtime) -> None:
    """Make ``runtime`` current for the rest of this context."""
    current_runtime.set(runtime)


@contextmanager
def use_runtime(runtime: Runtime) -> Iterator[Runtime]:
    """Make ``runtime`` current inside the block.

    Usage:
        with use_runtime(Runtime(eager_memos=False)):
            get_count, set_count = create_signal(0)
    """
    token = current_runtime.set(runtime)
    try:
        yield runtime
    finally:
        current_runtime.reset(token)
