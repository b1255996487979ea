"""
History context.

Publishes a ScopedHistory to everything running inside a ``with`` block
(including tasks spawned from it), so nested code can reach the active
history without it being passed down explicitly.
"""
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from loguru import logger

from .commands.errors import HistoryContextError
from .commands.history_manager import HistoryManager
from .commands.scoped import ScopedHistory

_current_history: ContextVar[Optional[ScopedHistory]] = ContextVar(
    "undoscope_current_history", default=None)


@contextmanager
def provide_history(scope: str, manager: Optional[HistoryManager] = None) -> Iterator[ScopedHistory]:
    """
    Make a scoped history current for the duration of the block.

    Example:
        with provide_history(f"document-{doc.id}"):
            await toolbar.handle_undo_click()  # uses current_history()

    Args:
        scope: Scope identifier for this history
        manager: HistoryManager to use (default: module-level instance)

    Yields:
        The ScopedHistory made current
    """
    history = ScopedHistory(manager, scope)
    token = _current_history.set(history)
    logger.debug(f"provide_history: entered '{scope}'")
    try:
        yield history
    finally:
        _current_history.reset(token)
        history.close()
        logger.debug(f"provide_history: left '{scope}'")


def current_history() -> ScopedHistory:
    """
    Return the active scoped history.

    Raises:
        HistoryContextError: If called outside provide_history()
    """
    history = _current_history.get()
    if history is None:
        raise HistoryContextError("current_history() must be used within provide_history()")
    return history


def optional_history() -> Optional[ScopedHistory]:
    """Return the active scoped history, or None outside provide_history()."""
    return _current_history.get()
