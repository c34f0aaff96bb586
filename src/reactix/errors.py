"""Exceptions raised by reactix itself. Callback exceptions are never wrapped."""


class ReactixError(Exception):
    """Base class for reactix errors."""


class CyclicDependencyError(ReactixError):
    """A computation tried to run while it was already running."""


class DisposedError(ReactixError):
    """A disposed signal or memo was read or written."""
