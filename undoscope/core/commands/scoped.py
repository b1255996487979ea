"""
Scoped History - history access bound to one scope.

ScopedHistory is the framework-agnostic consumer accessor: it binds a
HistoryManager to a single scope, keeps a derived snapshot up to date
and re-publishes changes through its own Signal. UI layers (see
undoscope.ui.mvvm) adapt that Signal to their reactivity primitive.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple, TypeVar

from .base import UndoableCommand
from .history_manager import HistoryManager, HistoryState, history_manager
from ..events import Signal

T = TypeVar('T')


@dataclass(frozen=True)
class HistorySnapshot:
    """Derived, render-safe state of one scope."""
    can_undo: bool = False
    can_redo: bool = False
    undo_description: Optional[str] = None
    redo_description: Optional[str] = None
    # Full description lists, so listeners also see changes below the top entry
    history: HistoryState = field(default_factory=HistoryState)


class ScopedHistory:
    """
    HistoryManager access bound to a single scope.

    Subscribes on construction and unsubscribes on close(). The snapshot
    is refreshed on every manager notification, so reads between
    notifications always see one consistent state.

    Example:
        with ScopedHistory(manager, "doc-1") as history:
            history.on_changed.connect(lambda snap: toolbar.update(snap))
            await history.execute(create_property_change_command(doc, "title", "Draft"))
            if history.can_undo:
                await history.undo()
    """

    def __init__(self, manager: Optional[HistoryManager] = None, scope: str = "default"):
        self._manager = manager if manager is not None else history_manager
        self._scope = scope
        self.on_changed = Signal(f"ScopedHistory[{scope}]")
        self._unsubscribe = self._manager.subscribe(scope, self._on_manager_changed)
        self._snapshot = self._read_snapshot()

    @property
    def manager(self) -> HistoryManager:
        return self._manager

    @property
    def scope(self) -> str:
        return self._scope

    @property
    def closed(self) -> bool:
        return self._unsubscribe is None

    def _read_snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(
            can_undo=self._manager.can_undo(self._scope),
            can_redo=self._manager.can_redo(self._scope),
            undo_description=self._manager.get_undo_description(self._scope),
            redo_description=self._manager.get_redo_description(self._scope),
            history=self._manager.get_history(self._scope),
        )

    def _on_manager_changed(self) -> None:
        snapshot = self._read_snapshot()
        if snapshot == self._snapshot:
            return
        self._snapshot = snapshot
        self.on_changed.emit(snapshot)

    @property
    def snapshot(self) -> HistorySnapshot:
        return self._snapshot

    @property
    def can_undo(self) -> bool:
        return self.snapshot.can_undo

    @property
    def can_redo(self) -> bool:
        return self.snapshot.can_redo

    @property
    def undo_description(self) -> Optional[str]:
        return self.snapshot.undo_description

    @property
    def redo_description(self) -> Optional[str]:
        return self.snapshot.redo_description

    async def execute(self, command: UndoableCommand[T]) -> T:
        return await self._manager.execute(self._scope, command)

    async def undo(self) -> bool:
        return await self._manager.undo(self._scope)

    async def redo(self) -> bool:
        return await self._manager.redo(self._scope)

    def clear(self) -> None:
        self._manager.clear(self._scope)

    def get_history(self) -> HistoryState:
        return self._manager.get_history(self._scope)

    def get_undo_stack(self) -> Tuple[UndoableCommand, ...]:
        return self._manager.get_undo_stack(self._scope)

    def get_redo_stack(self) -> Tuple[UndoableCommand, ...]:
        return self._manager.get_redo_stack(self._scope)

    def close(self) -> None:
        """Stop listening to the manager and drop own subscribers."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.on_changed.disconnect_all()

    def __enter__(self) -> "ScopedHistory":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<ScopedHistory {self._scope!r}>"
