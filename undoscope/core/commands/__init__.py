"""
Command History System.

Provides Command pattern infrastructure with scoped undo/redo:
- UndoableCommand: Reversible command interface (sync or async)
- Built-in commands and factory helpers for common mutation shapes
- HistoryManager: Per-scope undo/redo stacks with merging and eviction
- ScopedHistory: History access bound to one scope
"""
from .base import CommandCapabilities, UndoableCommand
from .errors import EmptyBatchError, HistoryContextError, HistoryError, IndexOutOfBoundsError
from .handles import PropertyHandle
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
from .factory import (
    create_array_insert_command,
    create_array_move_command,
    create_array_remove_command,
    create_batch_command,
    create_command,
    create_function_command,
    create_map_delete_command,
    create_map_set_command,
    create_property_change_command,
)
from .history_manager import HistoryManager, HistoryStack, HistoryState, history_manager
from .scoped import HistorySnapshot, ScopedHistory

__all__ = [
    # Base interfaces
    "UndoableCommand",
    "CommandCapabilities",
    "PropertyHandle",
    # Errors
    "HistoryError",
    "EmptyBatchError",
    "IndexOutOfBoundsError",
    "HistoryContextError",
    # Built-in commands
    "CallableCommand",
    "PropertyChangeCommand",
    "BatchCommand",
    "ArrayInsertCommand",
    "ArrayRemoveCommand",
    "ArrayMoveCommand",
    "MapSetCommand",
    "MapDeleteCommand",
    # Factories
    "create_command",
    "create_property_change_command",
    "create_batch_command",
    "create_array_insert_command",
    "create_array_remove_command",
    "create_array_move_command",
    "create_map_set_command",
    "create_map_delete_command",
    "create_function_command",
    # Systems
    "HistoryManager",
    "HistoryStack",
    "HistoryState",
    "history_manager",
    "ScopedHistory",
    "HistorySnapshot",
]
