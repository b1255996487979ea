"""
Event System - Synchronous Pub/Sub.

Provides:
- Signal: Observer pattern for sync notifications (history changes, config changes)

Usage:
    from undoscope.core.events import Signal

    changed = Signal("HistoryChanged")
    unsubscribe = changed.connect(on_changed)
    changed.emit()
    unsubscribe()
"""
from .observer import Signal


__all__ = ["Signal"]
