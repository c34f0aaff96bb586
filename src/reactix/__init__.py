"""reactix: fine-grained reactive signals, effects and memos for Python."""

from importlib.metadata import version as _version

__version__ = _version("reactix")

from reactix._tracking import Runtime, default_equals, get_runtime, set_runtime, use_runtime
from reactix.errors import ReactixError, CyclicDependencyError, DisposedError
from reactix.signal import Signal, create_signal
from reactix.effect import Effect, create_effect, reaction
from reactix.memo import Memo, create_memo, memo
from reactix.scope import create_root, on_cleanup, untrack, get_owner

__all__ = [
    "create_signal",
    "create_effect",
    "create_memo",
    "Signal",
    "Effect",
    "Memo",
    "memo",
    "reaction",
    "create_root",
    "on_cleanup",
    "untrack",
    "get_owner",
    "Runtime",
    "default_equals",
    "get_runtime",
    "set_runtime",
    "use_runtime",
    "ReactixError",
    "CyclicDependencyError",
    "DisposedError",
]
