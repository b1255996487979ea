"""
History Manager - Scoped undo/redo management.

Each scope (a document id, a widget name, ...) owns an independent pair
of undo/redo stacks. The manager is the only code that mutates them: it
coalesces rapid same-type commands, evicts the oldest entries beyond the
configured size and notifies per-scope subscribers after every change.
"""
import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple, TypeVar

from loguru import logger

from .base import UndoableCommand, resolve
from ..events import Signal

if TYPE_CHECKING:
    from ..config import ConfigManager, HistorySettings

T = TypeVar('T')

DEFAULT_MAX_SIZE = 100
DEFAULT_MERGE_WINDOW = 1.0


@dataclass
class HistoryStack:
    """Undo/redo stacks of one scope. Oldest first, top is the last element."""
    max_size: int
    undo_stack: List[UndoableCommand] = field(default_factory=list)
    redo_stack: List[UndoableCommand] = field(default_factory=list)

    def trim(self) -> int:
        """Drop the oldest undo entries beyond ``max_size``; return how many."""
        overflow = len(self.undo_stack) - self.max_size
        if overflow > 0:
            del self.undo_stack[:overflow]
            return overflow
        return 0


@dataclass(frozen=True)
class HistoryState:
    """Descriptions of undoable and redoable commands, oldest first."""
    undo: List[str] = field(default_factory=list)
    redo: List[str] = field(default_factory=list)


class HistoryManager:
    """
    Manages undo/redo stacks for UndoableCommands, one pair per scope.

    Features:
    - Independent history per scope
    - Merging of rapid consecutive commands of the same type
    - Configurable max history size (oldest entries evicted)
    - Per-scope change subscriptions for UI binding
    - Operations on one scope are serialized; scopes run independently

    Usage:
        history = HistoryManager(max_size=50)

        cmd = create_property_change_command(doc, "title", "Draft")
        await history.execute("doc-1", cmd)

        await history.undo("doc-1")  # title restored
        await history.redo("doc-1")  # "Draft" again

        unsubscribe = history.subscribe("doc-1", refresh_toolbar)

    A command must not call back into the manager for its own scope from
    execute/undo/redo; the scope is locked while the command runs.

    Scope locks are asyncio.Lock objects created on first use, so a manager
    belongs to one event loop. Tests and applications that start a new loop
    should build their own manager or call remove_scope() on idle scopes.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE,
                 merge_window: float = DEFAULT_MERGE_WINDOW):
        """
        Initialize HistoryManager.

        Args:
            max_size: Maximum commands to keep in each scope's undo stack
            merge_window: Seconds within which same-type commands may merge
        """
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        if merge_window < 0:
            raise ValueError(f"merge_window must not be negative, got {merge_window}")

        self._max_size = max_size
        self._merge_window = merge_window

        self._stacks: Dict[str, HistoryStack] = {}
        self._listeners: Dict[str, Signal] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @classmethod
    def from_settings(cls, settings: 'HistorySettings') -> 'HistoryManager':
        """Build a manager from the ``history`` config section."""
        return cls(max_size=settings.max_size, merge_window=settings.merge_window)

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def merge_window(self) -> float:
        return self._merge_window

    def configure(self, max_size: Optional[int] = None,
                  merge_window: Optional[float] = None) -> None:
        """
        Change limits at runtime.

        A smaller max_size takes effect on each scope's next push.
        """
        if max_size is not None:
            if max_size < 1:
                raise ValueError(f"max_size must be at least 1, got {max_size}")
            self._max_size = max_size
            for stack in self._stacks.values():
                stack.max_size = max_size
        if merge_window is not None:
            if merge_window < 0:
                raise ValueError(f"merge_window must not be negative, got {merge_window}")
            self._merge_window = merge_window
        logger.debug(f"History limits: max_size={self._max_size}, merge_window={self._merge_window}s")

    def bind_config(self, config: 'ConfigManager') -> Callable[[], None]:
        """
        Apply the ``history`` config section and follow later updates.

        Returns:
            Function that stops following config changes
        """
        settings = config.data.history
        self.configure(max_size=settings.max_size, merge_window=settings.merge_window)

        def on_config_changed(section, key, value):
            if section != "history":
                return
            if key == "max_size":
                self.configure(max_size=value)
            elif key == "merge_window":
                self.configure(merge_window=value)

        return config.on_changed.connect(on_config_changed)

    # --- Internals ---

    def _get_stack(self, scope: str) -> HistoryStack:
        stack = self._stacks.get(scope)
        if stack is None:
            stack = HistoryStack(max_size=self._max_size)
            self._stacks[scope] = stack
        return stack

    def _get_lock(self, scope: str) -> asyncio.Lock:
        lock = self._locks.get(scope)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[scope] = lock
        return lock

    def _notify(self, scope: str) -> None:
        signal = self._listeners.get(scope)
        if signal is not None:
            signal.emit()

    def _is_top(self, scope: str, stack: HistoryStack,
                commands: List[UndoableCommand], command: UndoableCommand) -> bool:
        # clear() and clear_all() do not take the scope lock, so the stack may
        # be emptied or dropped while a command is awaited
        if self._stacks.get(scope) is not stack or not commands or commands[-1] is not command:
            logger.debug(f"History of '{scope}' changed while '{command.description}' ran")
            return False
        return True

    def _try_merge(self, stack: HistoryStack, command: UndoableCommand) -> bool:
        """Replace the top command with a merged one; True if that happened."""
        if not stack.undo_stack:
            return False

        top = stack.undo_stack[-1]
        if top.type != command.type:
            return False
        if command.created_at - top.created_at > self._merge_window:
            return False
        if not top.capabilities.mergeable:
            return False

        merged = top.merge(command)
        if merged is None:
            return False

        stack.undo_stack[-1] = merged
        logger.debug(f"Merged '{command.description}' into '{top.description}'")
        return True

    # --- Operations ---

    async def execute(self, scope: str, command: UndoableCommand[T]) -> T:
        """
        Execute a command and record it in the scope's undo stack.

        Clears the redo stack, merges with the previous command when
        eligible and evicts the oldest entries beyond max_size.

        Args:
            scope: Scope identifier (e.g. document id)
            command: UndoableCommand to execute

        Returns:
            Whatever the command's execute() produced

        Raises:
            Exception: Any error from execute(); history is left untouched
        """
        async with self._get_lock(scope):
            try:
                result = await resolve(command.execute())
            except Exception as e:
                logger.error(f"Command execution failed in '{scope}': {e}")
                raise

            stack = self._get_stack(scope)
            if not self._try_merge(stack, command):
                stack.undo_stack.append(command)
                evicted = stack.trim()
                if evicted:
                    logger.debug(f"Evicted {evicted} oldest command(s) from '{scope}'")

            # New action breaks the redo chain
            stack.redo_stack.clear()

            logger.debug(f"Executed in '{scope}': {command.description}")
            self._notify(scope)
            return result

    async def undo(self, scope: str) -> bool:
        """
        Undo the last command of a scope.

        Returns:
            True if undo was performed, False if nothing to undo

        Raises:
            Exception: Any error from the command's undo(); the command
                stays on the undo stack
        """
        async with self._get_lock(scope):
            stack = self._stacks.get(scope)
            if stack is None or not stack.undo_stack:
                return False

            command = stack.undo_stack[-1]
            try:
                await resolve(command.undo())
            except Exception as e:
                logger.error(f"Undo failed in '{scope}': {e}")
                raise

            if self._is_top(scope, stack, stack.undo_stack, command):
                stack.undo_stack.pop()
                stack.redo_stack.append(command)

            logger.debug(f"Undone in '{scope}': {command.description}")
            self._notify(scope)
            return True

    async def redo(self, scope: str) -> bool:
        """
        Redo the last undone command of a scope.

        Returns:
            True if redo was performed, False if nothing to redo

        Raises:
            Exception: Any error from the command's redo(); the command
                stays on the redo stack
        """
        async with self._get_lock(scope):
            stack = self._stacks.get(scope)
            if stack is None or not stack.redo_stack:
                return False

            command = stack.redo_stack[-1]
            try:
                await resolve(command.redo())
            except Exception as e:
                logger.error(f"Redo failed in '{scope}': {e}")
                raise

            if self._is_top(scope, stack, stack.redo_stack, command):
                stack.redo_stack.pop()
                stack.undo_stack.append(command)

            logger.debug(f"Redone in '{scope}': {command.description}")
            self._notify(scope)
            return True

    def can_undo(self, scope: str) -> bool:
        """Check if undo is available."""
        stack = self._stacks.get(scope)
        return stack is not None and len(stack.undo_stack) > 0

    def can_redo(self, scope: str) -> bool:
        """Check if redo is available."""
        stack = self._stacks.get(scope)
        return stack is not None and len(stack.redo_stack) > 0

    def get_undo_description(self, scope: str) -> Optional[str]:
        """Get description of next undo action."""
        stack = self._stacks.get(scope)
        if stack and stack.undo_stack:
            return stack.undo_stack[-1].description
        return None

    def get_redo_description(self, scope: str) -> Optional[str]:
        """Get description of next redo action."""
        stack = self._stacks.get(scope)
        if stack and stack.redo_stack:
            return stack.redo_stack[-1].description
        return None

    def clear(self, scope: str) -> None:
        """Clear undo/redo history of one scope."""
        stack = self._stacks.get(scope)
        if stack is not None:
            stack.undo_stack.clear()
            stack.redo_stack.clear()
        logger.debug(f"History cleared for '{scope}'")
        self._notify(scope)

    def clear_all(self) -> None:
        """Clear history of every scope."""
        scopes = list(self._stacks)
        self._stacks.clear()
        logger.debug(f"History cleared for {len(scopes)} scope(s)")
        for scope in scopes:
            self._notify(scope)

    def remove_scope(self, scope: str) -> None:
        """Drop a scope entirely, including its subscribers."""
        self._stacks.pop(scope, None)
        self._listeners.pop(scope, None)
        lock = self._locks.get(scope)
        if lock is not None and not lock.locked():
            del self._locks[scope]

    def get_scopes(self) -> List[str]:
        """Scopes that currently hold a history stack."""
        return list(self._stacks)

    def get_history(self, scope: str) -> HistoryState:
        """Descriptions of both stacks, oldest first."""
        stack = self._stacks.get(scope)
        if stack is None:
            return HistoryState()
        return HistoryState(
            undo=[cmd.description for cmd in stack.undo_stack],
            redo=[cmd.description for cmd in stack.redo_stack],
        )

    def get_undo_stack(self, scope: str) -> Tuple[UndoableCommand, ...]:
        """Snapshot of the undo stack, oldest first."""
        stack = self._stacks.get(scope)
        return tuple(stack.undo_stack) if stack else ()

    def get_redo_stack(self, scope: str) -> Tuple[UndoableCommand, ...]:
        """Snapshot of the redo stack, oldest first."""
        stack = self._stacks.get(scope)
        return tuple(stack.redo_stack) if stack else ()

    def subscribe(self, scope: str, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Call ``callback`` after every change to a scope's history.

        Returns:
            Unsubscribe function
        """
        signal = self._listeners.get(scope)
        if signal is None:
            signal = Signal(f"History[{scope}]")
            self._listeners[scope] = signal
        signal.connect(callback)

        def unsubscribe() -> None:
            signal.disconnect(callback)
            if signal.subscriber_count == 0 and self._listeners.get(scope) is signal:
                del self._listeners[scope]

        return unsubscribe


# Default instance for callers that don't need an isolated history.
# Bound to the first event loop that contends one of its scope locks.
history_manager = HistoryManager()
