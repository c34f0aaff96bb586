"""Ownership scopes: explicit lifetimes for reactive primitives.

Signals, effects and memos created while an owner is active belong to it
and are disposed with it. Computations own what they create during a run;
create_root() opens a standalone scope that lives until its dispose
function is called.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from reactix._tracking import get_runtime
from reactix.computation import Owner

logger = logging.getLogger("reactix.scope")

T = TypeVar("T")


class Root(Owner):
    """A detached owner: not adopted by whatever scope creates it."""

    __slots__ = ()

    def __init__(self, runtime) -> None:
        super().__init__(runtime, detached=True)

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else f"owning {len(self._owned)}"
        return f"Root({state})"


def create_root(fn: Callable[[Callable[[], None]], T]) -> T:
    """Run fn(dispose) in a fresh, untracked ownership scope and return its result.

    Usage:
        def app(dispose):
            create_effect(lambda: log.append(count()))
            return dispose

        dispose = create_root(app)
        dispose()  # the effect stops

    If fn raises, everything created so far is disposed before the error
    propagates.
    """
    runtime = get_runtime()
    root = Root(runtime)
    try:
        with runtime.frame(None, root):
            return fn(root.dispose)
    except Exception:
        root.dispose()
        raise


def on_cleanup(fn: Callable[[], Any]) -> Callable[[], Any]:
    """Run fn before the current owner re-runs or when it is disposed.

    Usable as a decorator. Outside any owner, fn would never run; a
    warning is logged and fn is returned unregistered.
    """
    owner = get_runtime().owner
    if owner is None:
        logger.warning("on_cleanup() called outside an owner; %r will never run", fn)
        return fn
    owner._add_cleanup(fn)
    return fn


def untrack(fn: Callable[[], T]) -> T:
    """Call fn with dependency tracking suspended."""
    runtime = get_runtime()
    with runtime.frame(None, runtime.owner):
        return fn()


def get_owner() -> Owner | None:
    """The owner that primitives created right now will belong to."""
    return get_runtime().owner
