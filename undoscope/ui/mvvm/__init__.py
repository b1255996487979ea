"""
MVVM bindings for the history engine (PySide6).

- BindableProperty / BindableBase: Property change notification via Qt signals
- HistoryViewModel: Undo/redo state and actions of one scope
- HistoryShortcuts: Ctrl+Z / Ctrl+Shift+Z / Ctrl+Y actions bound to a view model
"""
from undoscope.ui.mvvm.bindable import BindableBase, BindableProperty
from undoscope.ui.mvvm.history_viewmodel import HistoryViewModel
from undoscope.ui.mvvm.shortcuts import HistoryShortcuts

__all__ = ["BindableBase", "BindableProperty", "HistoryViewModel", "HistoryShortcuts"]
