"""
History Errors.

Exceptions raised by the command history engine itself. Failures raised
by a command's own execute/undo/redo are never wrapped; they propagate
to the caller unchanged.
"""


class HistoryError(Exception):
    """Base class for errors raised by the history engine."""
    pass


class EmptyBatchError(HistoryError, ValueError):
    """Raised when a batch command is built from zero sub-commands."""
    pass


class IndexOutOfBoundsError(HistoryError, IndexError):
    """Raised by array commands when an index falls outside the sequence."""

    def __init__(self, message: str, index: int, length: int):
        super().__init__(message)
        self.index = index
        self.length = length


class HistoryContextError(HistoryError, LookupError):
    """Raised when no history context is active."""
    pass
