"""Memos: cached derived values that are themselves readable as signals.

A Memo subscribes to what its function reads and publishes to whoever
reads the Memo. By default memos are eager: a dependency write recomputes
the memo exactly once, no matter how many readers it has, and readers are
notified only when the new value differs from the cached one.

With Runtime(eager_memos=False) memos are lazy instead: creation does not
run the function, and a stale memo recomputes on its next read.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from reactix._tracking import DIRTY, Equals, Runtime, is_equal
from reactix.computation import Computation, _name
from reactix.errors import CyclicDependencyError, DisposedError

T = TypeVar("T")

_UNSET = object()


class Memo(Computation, Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_value", "_equals", "_observers")

    def __init__(
        self,
        fn: Callable[[], T],
        equals: Equals | None = None,
        runtime: Runtime | None = None,
    ) -> None:
        super().__init__(fn, runtime)
        self._value = _UNSET
        self._equals = self._runtime.equals if equals is None else equals
        self._observers: dict = {}
        if self._runtime.eager_memos:
            self._update()

    def get(self) -> T:
        """Read the cached value, registering the dependency like a Signal read.

        Only recomputes when a propagation pass has marked the memo stale and
        not reached it yet, or when the runtime is lazy.
        """
        if self._disposed:
            raise DisposedError(f"{self!r} was read after it was disposed")
        if self._runtime.is_running(self):
            raise CyclicDependencyError(f"{self!r} read itself while computing")
        self._refresh()
        self._runtime.track_read(self)
        return self._value

    __call__ = get

    def peek(self) -> T:
        """Read the cached value without tracking or recomputing."""
        return None if self._value is _UNSET else self._value

    def _update(self) -> None:
        value = self._execute()
        if self._value is not _UNSET and is_equal(self._equals, self._value, value):
            return
        self._value = value
        for observer in list(self._observers):
            observer._mark(DIRTY)

    def _settle(self) -> None:
        if self._runtime.eager_memos:
            self._refresh()

    def _dependents(self) -> list[Computation]:
        return list(self._observers)

    def _remove_observer(self, observer) -> None:
        """Remove an observer. Called during dependency cleanup."""
        self._observers.pop(observer, None)

    def dispose(self) -> None:
        """Disconnect from sources and readers. Later reads raise DisposedError."""
        self._observers.clear()
        super().dispose()

    def __repr__(self) -> str:
        if self._disposed:
            state = "disposed"
        elif self._state == DIRTY or self._value is _UNSET:
            state = "dirty"
        else:
            state = f"cached={self._value!r}"
        return f"Memo({_name(self._fn)}, {state})"


def create_memo(fn: Callable[[], T], equals: Equals | None = None) -> Callable[[], T]:
    """Create a memo and return its getter.

    Usage:
        count, set_count = create_signal(1)
        doubled = create_memo(lambda: count() * 2)

        doubled()     # 2
        set_count(5)  # recomputes once, here
        doubled()     # 10, from cache
    """
    return Memo(fn, equals).get


def memo(fn: Callable[[], T]) -> Memo[T]:
    """Decorator/factory to create a Memo from a function.

    Usage:
        count, set_count = create_signal(7)

        @memo
        def doubled():
            return count() * 2

        doubled()  # 14
        set_count(3)
        doubled()  # 6
    """
    return Memo(fn)
