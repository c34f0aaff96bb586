"""Signals: mutable cells that track their readers.

When a Signal is read inside an Effect or Memo run, the dependency is
registered automatically. When the Signal is written with a new value,
every subscriber is re-run before ``set`` returns.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from reactix._tracking import Equals, Runtime, get_runtime, is_equal
from reactix.computation import _detach
from reactix.errors import DisposedError

T = TypeVar("T")


class Signal(Generic[T]):
    """A single reactive value with automatic dependency tracking."""

    __slots__ = ("_value", "_equals", "_observers", "_runtime", "_owner", "_disposed")

    def __init__(
        self,
        value: T,
        equals: Equals | None = None,
        runtime: Runtime | None = None,
    ) -> None:
        self._runtime = runtime if runtime is not None else get_runtime()
        self._value = value
        self._equals = self._runtime.equals if equals is None else equals
        # dict keys keep subscription order for a reproducible propagation order
        self._observers: dict = {}
        self._disposed = False
        self._owner = None
        owner = self._runtime.owner
        if owner is not None:
            owner._adopt(self)

    def get(self) -> T:
        """Read the value. If a computation is running, registers the dependency."""
        if self._disposed:
            raise DisposedError(f"{self!r} was read after its scope was disposed")
        self._runtime.track_read(self)
        return self._value

    __call__ = get

    def peek(self) -> T:
        """Read the value without tracking."""
        return self._value

    def set(self, value: T) -> None:
        """Write a new value and propagate. Equal values are ignored."""
        if self._disposed:
            raise DisposedError(f"{self!r} was written after its scope was disposed")
        if is_equal(self._equals, self._value, value):
            return
        self._value = value
        self._runtime.propagate(self)

    def update(self, fn: Callable[[T], T]) -> None:
        """Set the value to ``fn(current)``."""
        self.set(fn(self._value))

    def dispose(self) -> None:
        """Detach all subscribers. Further reads and writes raise DisposedError."""
        if self._disposed:
            return
        self._disposed = True
        self._observers.clear()
        _detach(self)

    def _refresh(self) -> None:
        """Signals are always up to date."""

    def _remove_observer(self, observer) -> None:
        """Remove an observer. Called during dependency cleanup."""
        self._observers.pop(observer, None)

    def __repr__(self) -> str:
        return f"Signal({self._value!r})"


def create_signal(
    value: T, equals: Equals | None = None
) -> tuple[Callable[[], T], Callable[[T], None]]:
    """Create a signal and return its ``(get, set)`` pair.

    Usage:
        count, set_count = create_signal(0)
        create_effect(lambda: print(count()))  # prints 0
        set_count(1)                           # prints 1
        set_count(1)                           # equal value, nothing runs
    """
    signal = Signal(value, equals)
    return signal.get, signal.set
