"""Effects: side effects that re-run when the state they read changes.

Two flavors:
- create_effect(fn): runs fn immediately, re-runs when anything it read changes.
- reaction(data_fn, effect_fn): tracks data_fn, calls effect_fn with the new value
  only when data_fn's result changes.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from reactix._tracking import Runtime, is_equal
from reactix.computation import Computation, _name

T = TypeVar("T")

_UNSET = object()


class Effect(Computation):
    """A computation with no output, re-run eagerly on any dependency change.

    The constructor runs the callback once. Call dispose() to stop it.
    """

    __slots__ = ()

    def __init__(self, fn: Callable[[], None], runtime: Runtime | None = None) -> None:
        super().__init__(fn, runtime)
        self._update()

    def _update(self) -> None:
        self._execute()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"Effect({_name(self._fn)}, {state})"


class _DataReaction(Effect):
    """Internal: reaction(data_fn, effect_fn) implementation.

    Tracks data_fn's dependencies. When they change, re-runs data_fn.
    If the result differs from last time, calls effect_fn untracked.
    """

    __slots__ = ("_effect_fn", "_last_value", "_fire_immediately")

    def __init__(
        self,
        data_fn: Callable[[], T],
        effect_fn: Callable[[T], None],
        fire_immediately: bool = False,
        runtime: Runtime | None = None,
    ) -> None:
        self._effect_fn = effect_fn
        self._last_value = _UNSET
        self._fire_immediately = fire_immediately
        super().__init__(data_fn, runtime)

    def _update(self) -> None:
        value = self._execute()
        first = self._last_value is _UNSET
        if not first and is_equal(self._runtime.equals, self._last_value, value):
            return
        self._last_value = value
        if first and not self._fire_immediately:
            return
        with self._runtime.frame(None, self):
            self._effect_fn(value)

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"_DataReaction({_name(self._fn)}, {state})"


def create_effect(fn: Callable[[], None]) -> None:
    """Run fn immediately, then re-run it whenever any signal or memo it reads changes.

    Usage:
        count, set_count = create_signal(0)
        log = []

        create_effect(lambda: log.append(count()))
        # log == [0], ran immediately

        set_count(1)
        # log == [0, 1], re-ran because count changed

    Use Effect(fn) directly, or create_root(), when the effect must be disposed.
    """
    Effect(fn)


def reaction(
    data_fn: Callable[[], T],
    effect_fn: Callable[[T], None],
    *,
    fire_immediately: bool = False,
) -> Effect:
    """Track data_fn's reads; call effect_fn when its result changes.

    Unlike create_effect, effect_fn only fires when data_fn's *return value*
    changes, and nothing effect_fn reads is tracked.

    Returns the effect (call .dispose() to stop).

    Usage:
        first, set_first = create_signal("Alice")
        last, set_last = create_signal("Smith")

        names = []
        r = reaction(lambda: f"{first()} {last()}", names.append)
        # names == []: data_fn ran to establish deps, effect_fn did not

        set_first("Bob")
        # names == ["Bob Smith"]

        r.dispose()
    """
    return _DataReaction(data_fn, effect_fn, fire_immediately)
