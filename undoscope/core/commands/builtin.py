"""
Built-in Undoable Commands - Reusable command implementations.

Provides command classes for the common mutation shapes:
- CallableCommand: Wraps plain execute/undo callables
- PropertyChangeCommand: Object attribute or mapping item assignment (mergeable)
- BatchCommand: Group multiple commands as one undo step
- ArrayInsertCommand / ArrayRemoveCommand / ArrayMoveCommand: List edits
- MapSetCommand / MapDeleteCommand: Mapping edits

Every command captures the "before" state it needs when it is built (or,
for removals, when it executes) so undo never recomputes it.
"""
from collections.abc import MutableMapping, MutableSequence
from typing import Any, Callable, Hashable, List, Optional

from .base import CommandCapabilities, MaybeAwaitable, UndoableCommand, resolve
from .errors import EmptyBatchError, IndexOutOfBoundsError
from .handles import PropertyHandle


class CallableCommand(UndoableCommand):
    """
    Command assembled from callables.

    Example:
        cmd = CallableCommand(
            "set-color", "Change color to red",
            execute=lambda: setattr(shape, "color", "red"),
            undo=lambda: setattr(shape, "color", "blue"),
        )
    """

    def __init__(self, command_type: str, description: str,
                 execute: Callable[[], MaybeAwaitable[Any]],
                 undo: Callable[[], MaybeAwaitable[None]],
                 redo: Optional[Callable[[], MaybeAwaitable[Any]]] = None,
                 merge: Optional[Callable[[UndoableCommand], Optional[UndoableCommand]]] = None,
                 created_at: Optional[float] = None):
        super().__init__(description, created_at)
        self.command_type = command_type
        self._execute_fn = execute
        self._undo_fn = undo
        self._redo_fn = redo
        self._merge_fn = merge

    @property
    def capabilities(self) -> CommandCapabilities:
        return CommandCapabilities(
            mergeable=self._merge_fn is not None,
            has_custom_redo=self._redo_fn is not None,
        )

    def execute(self):
        return self._execute_fn()

    def undo(self):
        return self._undo_fn()

    def redo(self):
        if self._redo_fn is None:
            return self._execute_fn()
        return self._redo_fn()

    def merge(self, incoming: UndoableCommand) -> Optional[UndoableCommand]:
        if self._merge_fn is None:
            return None
        return self._merge_fn(incoming)


class PropertyChangeCommand(UndoableCommand):
    """
    Set a property with undo support.

    Captures the old value on construction. Consecutive changes to the
    same target and key merge into one command that undoes to the first
    old value and applies the latest new value.

    Example:
        cmd = PropertyChangeCommand(PropertyHandle(doc, "title"), "Draft")
        await history.execute("doc", cmd)
    """

    command_type = "property-change"

    def __init__(self, handle: PropertyHandle, new_value: Any,
                 description: Optional[str] = None,
                 created_at: Optional[float] = None,
                 _old_value: Any = None, _captured: bool = False):
        super().__init__(description or f"Change {handle.name}", created_at)
        self.handle = handle
        self.new_value = new_value
        # Merged commands keep the first snapshot instead of reading it again
        self._old_value = _old_value if _captured else handle.snapshot()

    @property
    def old_value(self) -> Any:
        return self._old_value

    def execute(self) -> None:
        self.handle.set(self.new_value)

    def undo(self) -> None:
        self.handle.restore(self._old_value)

    def merge(self, incoming: UndoableCommand) -> Optional[UndoableCommand]:
        if not isinstance(incoming, PropertyChangeCommand):
            return None
        if incoming.type != self.type or not self.handle.same_target(incoming.handle):
            return None
        return PropertyChangeCommand(
            self.handle,
            incoming.new_value,
            description=incoming.description,
            created_at=self.created_at,
            _old_value=self._old_value,
            _captured=True,
        )


class BatchCommand(UndoableCommand):
    """
    Groups multiple commands as a single undoable unit.

    Sub-commands execute in order and undo in strict reverse order.
    Batches never merge with later commands.

    Example:
        batch = BatchCommand([
            PropertyChangeCommand(PropertyHandle(shape, "x"), 10),
            PropertyChangeCommand(PropertyHandle(shape, "y"), 20),
        ], "Move shape to (10, 20)")
    """

    command_type = "batch"

    def __init__(self, commands: List[UndoableCommand], description: str,
                 created_at: Optional[float] = None):
        if not commands:
            raise EmptyBatchError("Batch command requires at least one command")
        super().__init__(description, created_at)
        self._commands = list(commands)

    @property
    def commands(self) -> tuple:
        return tuple(self._commands)

    async def execute(self) -> None:
        for cmd in self._commands:
            await resolve(cmd.execute())

    async def undo(self) -> None:
        for cmd in reversed(self._commands):
            await resolve(cmd.undo())

    async def redo(self) -> None:
        for cmd in self._commands:
            await resolve(cmd.redo())


class ArrayInsertCommand(UndoableCommand):
    """Insert an item into a list; undo removes it again."""

    command_type = "array-insert"

    def __init__(self, array: MutableSequence, item: Any,
                 index: Optional[int] = None, description: Optional[str] = None,
                 created_at: Optional[float] = None):
        self.array = array
        self.item = item
        self.index = len(array) if index is None else index
        super().__init__(description or f"Insert item at index {self.index}", created_at)

    def execute(self) -> None:
        # Store the position list.insert actually uses so undo removes that item
        length = len(self.array)
        index = self.index + length if self.index < 0 else self.index
        self.index = min(max(index, 0), length)
        self.array.insert(self.index, self.item)

    def undo(self) -> None:
        # Assumes nothing outside the history touched the list since execute
        del self.array[self.index]


class ArrayRemoveCommand(UndoableCommand):
    """Remove the item at an index; undo re-inserts it at the same index."""

    command_type = "array-remove"

    def __init__(self, array: MutableSequence, index: int,
                 description: Optional[str] = None,
                 created_at: Optional[float] = None):
        super().__init__(description or f"Remove item at index {index}", created_at)
        self.array = array
        self.index = index
        self.removed_item: Any = None

    def execute(self) -> None:
        length = len(self.array)
        if self.index < 0 or self.index >= length:
            raise IndexOutOfBoundsError(
                f"Index {self.index} out of bounds for array of length {length}",
                self.index, length)
        self.removed_item = self.array[self.index]
        del self.array[self.index]

    def undo(self) -> None:
        self.array.insert(self.index, self.removed_item)


class ArrayMoveCommand(UndoableCommand):
    """
    Move an item within a list.

    ``to_index`` is a position in the list before the move, so moving
    forward lands one slot earlier once the item has been taken out.
    """

    command_type = "array-move"

    def __init__(self, array: MutableSequence, from_index: int, to_index: int,
                 description: Optional[str] = None,
                 created_at: Optional[float] = None):
        super().__init__(description or f"Move item from {from_index} to {to_index}", created_at)
        self.array = array
        self.from_index = from_index
        self.to_index = to_index

    @property
    def _landing_index(self) -> int:
        return self.to_index - 1 if self.to_index > self.from_index else self.to_index

    def execute(self) -> None:
        length = len(self.array)
        if self.from_index < 0 or self.from_index >= length:
            raise IndexOutOfBoundsError(
                f"fromIndex {self.from_index} out of bounds", self.from_index, length)
        if self.to_index < 0 or self.to_index > length:
            raise IndexOutOfBoundsError(
                f"toIndex {self.to_index} out of bounds", self.to_index, length)
        item = self.array.pop(self.from_index)
        self.array.insert(self._landing_index, item)

    def undo(self) -> None:
        item = self.array.pop(self._landing_index)
        self.array.insert(self.from_index, item)


class MapSetCommand(UndoableCommand):
    """Set a mapping key; undo restores the old value or deletes the key."""

    command_type = "map-set"

    def __init__(self, mapping: MutableMapping, key: Hashable, new_value: Any,
                 description: Optional[str] = None,
                 created_at: Optional[float] = None):
        super().__init__(description or "Set map key", created_at)
        self.mapping = mapping
        self.key = key
        self.new_value = new_value
        self.had_key = key in mapping
        self.old_value = mapping[key] if self.had_key else None

    def execute(self) -> None:
        self.mapping[self.key] = self.new_value

    def undo(self) -> None:
        if self.had_key:
            self.mapping[self.key] = self.old_value
        else:
            self.mapping.pop(self.key, None)


class MapDeleteCommand(UndoableCommand):
    """Delete a mapping key; undo restores it only if it existed."""

    command_type = "map-delete"

    def __init__(self, mapping: MutableMapping, key: Hashable,
                 description: Optional[str] = None,
                 created_at: Optional[float] = None):
        super().__init__(description or "Delete map key", created_at)
        self.mapping = mapping
        self.key = key
        self.had_key = key in mapping
        self.old_value = mapping[key] if self.had_key else None

    def execute(self) -> None:
        self.mapping.pop(self.key, None)

    def undo(self) -> None:
        if self.had_key:
            self.mapping[self.key] = self.old_value
