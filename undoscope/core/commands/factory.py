"""
Command Creation Helpers.

Factory functions that build well-formed commands, so call sites never
hand-roll undo logic. Factories only construct; nothing is executed or
recorded until the command is handed to a HistoryManager.
"""
from collections.abc import MutableMapping, MutableSequence
from typing import Any, Callable, Hashable, List, Optional

from .base import MaybeAwaitable, T, UndoableCommand
from .builtin import (
    ArrayInsertCommand,
    ArrayMoveCommand,
    ArrayRemoveCommand,
    BatchCommand,
    CallableCommand,
    MapDeleteCommand,
    MapSetCommand,
    PropertyChangeCommand,
)
from .handles import PropertyHandle


def create_command(type: str, description: str,
                   execute: Callable[[], MaybeAwaitable[T]],
                   undo: Callable[[], MaybeAwaitable[None]],
                   redo: Optional[Callable[[], MaybeAwaitable[T]]] = None,
                   merge: Optional[Callable[[UndoableCommand], Optional[UndoableCommand]]] = None,
                   ) -> UndoableCommand[T]:
    """
    Create a history command from callables.

    Example:
        cmd = create_command(
            type="set-color",
            description="Change color to red",
            execute=lambda: setattr(element, "color", "red"),
            undo=lambda: setattr(element, "color", "blue"),
        )
    """
    return CallableCommand(type, description, execute, undo, redo=redo, merge=merge)


def create_property_change_command(target: Any, key: Hashable, new_value: Any,
                                   description: Optional[str] = None) -> PropertyChangeCommand:
    """
    Create a command that changes ``target.key`` (or ``target[key]`` for mappings).

    The old value is captured now. Rapid changes to the same target and
    key merge into a single undo step.

    Example:
        cmd = create_property_change_command(doc, "name", "New Name", 'Rename to "New Name"')
        await history_manager.execute("doc", cmd)
    """
    handle = target if isinstance(target, PropertyHandle) else PropertyHandle(target, key)
    return PropertyChangeCommand(handle, new_value, description)


def create_batch_command(commands: List[UndoableCommand], description: str) -> BatchCommand:
    """
    Create a command that runs several commands as one undo step.

    Raises:
        EmptyBatchError: If ``commands`` is empty
    """
    return BatchCommand(commands, description)


def create_array_insert_command(array: MutableSequence, item: Any,
                                index: Optional[int] = None,
                                description: Optional[str] = None) -> ArrayInsertCommand:
    """Create a command inserting ``item`` at ``index`` (default: append)."""
    return ArrayInsertCommand(array, item, index, description)


def create_array_remove_command(array: MutableSequence, index: int,
                                description: Optional[str] = None) -> ArrayRemoveCommand:
    """Create a command removing the item at ``index``. Bounds are checked on execute."""
    return ArrayRemoveCommand(array, index, description)


def create_array_move_command(array: MutableSequence, from_index: int, to_index: int,
                              description: Optional[str] = None) -> ArrayMoveCommand:
    """Create a command moving an item from ``from_index`` to ``to_index``."""
    return ArrayMoveCommand(array, from_index, to_index, description)


def create_map_set_command(mapping: MutableMapping, key: Hashable, new_value: Any,
                           description: Optional[str] = None) -> MapSetCommand:
    """Create a command setting ``mapping[key]``."""
    return MapSetCommand(mapping, key, new_value, description)


def create_map_delete_command(mapping: MutableMapping, key: Hashable,
                              description: Optional[str] = None) -> MapDeleteCommand:
    """Create a command deleting ``mapping[key]``."""
    return MapDeleteCommand(mapping, key, description)


def create_function_command(execute_fn: Callable[[], MaybeAwaitable[T]],
                            undo_fn: Callable[[], MaybeAwaitable[None]],
                            description: str,
                            redo_fn: Optional[Callable[[], MaybeAwaitable[T]]] = None,
                            ) -> UndoableCommand[T]:
    """
    Create a command around arbitrary (possibly async) callables.

    For operations that fit none of the standard shapes. The caller is
    responsible for ``undo_fn`` exactly reversing ``execute_fn``.

    Example:
        cmd = create_function_command(
            lambda: api.update_record(record_id, new_data),
            lambda: api.update_record(record_id, old_data),
            "Update record",
        )
    """
    return CallableCommand("function", description, execute_fn, undo_fn, redo=redo_fn)
