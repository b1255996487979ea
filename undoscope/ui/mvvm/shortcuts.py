"""
Keyboard shortcuts for a history view model.

Binds the platform undo chord (Ctrl+Z, Cmd+Z on macOS) and the redo
chords (Ctrl+Shift+Z, Ctrl+Y) to a HistoryViewModel. Qt maps "Ctrl" to
the Command key on macOS.
"""
import asyncio
from typing import List, Optional

from loguru import logger
from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QWidget

from undoscope.ui.mvvm.history_viewmodel import HistoryViewModel

UNDO_SHORTCUTS = ["Ctrl+Z"]
REDO_SHORTCUTS = ["Ctrl+Shift+Z", "Ctrl+Y"]


class HistoryShortcuts:
    """
    Application-wide undo/redo actions for one history scope.

    Actions are enabled only while the scope can undo/redo, and the
    trigger handlers check again, so no-op requests never reach the
    HistoryManager.

    Example:
        shortcuts = HistoryShortcuts(main_window, HistoryViewModel("doc-1"))
        edit_menu.addAction(shortcuts.undo_action)
        edit_menu.addAction(shortcuts.redo_action)
        ...
        shortcuts.dispose()
    """

    def __init__(self, parent: QWidget, view_model: HistoryViewModel):
        self.parent = parent
        self.view_model = view_model

        self.undo_action = self._make_action("Undo", UNDO_SHORTCUTS, self.trigger_undo)
        self.redo_action = self._make_action("Redo", REDO_SHORTCUTS, self.trigger_redo)

        view_model.canUndoChanged.connect(self.undo_action.setEnabled)
        view_model.canRedoChanged.connect(self.redo_action.setEnabled)
        view_model.undoDescriptionChanged.connect(self._update_undo_text)
        view_model.redoDescriptionChanged.connect(self._update_redo_text)

        self.undo_action.setEnabled(view_model.canUndo)
        self.redo_action.setEnabled(view_model.canRedo)
        self._update_undo_text(view_model.undoDescription)
        self._update_redo_text(view_model.redoDescription)
        logger.debug(f"History shortcuts bound for '{view_model.scope}'")

    def _make_action(self, text: str, shortcuts: List[str], callback) -> QAction:
        action = QAction(text, self.parent)
        action.setShortcuts([QKeySequence(s) for s in shortcuts])
        action.setShortcutContext(Qt.ShortcutContext.ApplicationShortcut)
        action.triggered.connect(lambda checked=False: callback())
        self.parent.addAction(action)
        return action

    def _update_undo_text(self, description: str) -> None:
        self.undo_action.setText(f"Undo {description}" if description else "Undo")

    def _update_redo_text(self, description: str) -> None:
        self.redo_action.setText(f"Redo {description}" if description else "Redo")

    def trigger_undo(self) -> Optional[asyncio.Task]:
        if not self.view_model.canUndo:
            return None
        return self.view_model.undo()

    def trigger_redo(self) -> Optional[asyncio.Task]:
        if not self.view_model.canRedo:
            return None
        return self.view_model.redo()

    def dispose(self) -> None:
        """Remove the actions (and their shortcuts) from the parent widget."""
        for action in (self.undo_action, self.redo_action):
            self.parent.removeAction(action)
            action.deleteLater()
        try:
            self.view_model.canUndoChanged.disconnect(self.undo_action.setEnabled)
            self.view_model.canRedoChanged.disconnect(self.redo_action.setEnabled)
            self.view_model.undoDescriptionChanged.disconnect(self._update_undo_text)
            self.view_model.redoDescriptionChanged.disconnect(self._update_redo_text)
        except (RuntimeError, TypeError) as e:
            logger.debug(f"History shortcuts already disconnected: {e}")
