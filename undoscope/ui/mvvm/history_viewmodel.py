"""
History ViewModel - Qt binding for one history scope.

Adapts ScopedHistory's Signal to Qt properties and signals, and runs the
async history actions as tasks on the running event loop (qasync in a
real application).
"""
import asyncio
from typing import Awaitable, Optional

from loguru import logger
from PySide6.QtCore import Signal

from undoscope.core.commands import HistoryManager, HistorySnapshot, ScopedHistory, UndoableCommand
from undoscope.ui.mvvm.bindable import BindableBase, BindableProperty


def _text(value) -> str:
    return value or ""


class HistoryViewModel(BindableBase):
    """
    View model exposing undo/redo state of a scope to Qt widgets.

    Example:
        vm = HistoryViewModel("doc-1", manager)
        vm.canUndoChanged.connect(undo_button.setEnabled)
        undo_button.clicked.connect(vm.undo)
        vm.errorOccurred.connect(toast.show_error)
    """

    canUndoChanged = Signal(bool)
    canRedoChanged = Signal(bool)
    undoDescriptionChanged = Signal(str)
    redoDescriptionChanged = Signal(str)
    errorOccurred = Signal(str)

    canUndo = BindableProperty(default=False, coerce=bool)
    canRedo = BindableProperty(default=False, coerce=bool)
    undoDescription = BindableProperty(default="", coerce=_text)
    redoDescription = BindableProperty(default="", coerce=_text)

    def __init__(self, scope: str, manager: Optional[HistoryManager] = None,
                 history: Optional[ScopedHistory] = None):
        """
        Args:
            scope: Scope to bind
            manager: HistoryManager to use (default: module-level instance)
            history: Existing ScopedHistory to adapt instead of creating one
        """
        super().__init__()
        self._owns_history = history is None
        self._history = history if history is not None else ScopedHistory(manager, scope)
        self._disconnect = self._history.on_changed.connect(self._apply_snapshot)
        self._apply_snapshot(self._history.snapshot)

    @property
    def history(self) -> ScopedHistory:
        return self._history

    @property
    def scope(self) -> str:
        return self._history.scope

    def _apply_snapshot(self, snapshot: HistorySnapshot) -> None:
        self.canUndo = snapshot.can_undo
        self.canRedo = snapshot.can_redo
        self.undoDescription = snapshot.undo_description
        self.redoDescription = snapshot.redo_description

    async def _guarded(self, action: str, coro: Awaitable):
        try:
            return await coro
        except Exception as e:
            logger.error(f"{action} failed in '{self.scope}': {e}")
            self.errorOccurred.emit(f"{action} failed: {e}")
            return None

    def _schedule(self, action: str, coro: Awaitable) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        return loop.create_task(self._guarded(action, coro))

    def execute(self, command: UndoableCommand) -> asyncio.Task:
        """Schedule ``command`` on the bound scope."""
        return self._schedule("Execute", self._history.execute(command))

    def undo(self) -> asyncio.Task:
        """Schedule an undo; the task resolves to True/False (None on failure)."""
        return self._schedule("Undo", self._history.undo())

    def redo(self) -> asyncio.Task:
        """Schedule a redo; the task resolves to True/False (None on failure)."""
        return self._schedule("Redo", self._history.redo())

    def clear(self) -> None:
        self._history.clear()

    def dispose(self) -> None:
        """Disconnect from the history; closes it if this view model created it."""
        if self._disconnect is not None:
            self._disconnect()
            self._disconnect = None
        if self._owns_history:
            self._history.close()
