"""
Command Pattern - Base Interfaces.

Provides:
- UndoableCommand: Reversible (possibly async) operation with undo/redo support
- CommandCapabilities: Checked flags for optional merge/redo behaviour
- resolve: Await a command result only when it is awaitable
"""
import inspect
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Optional, TypeVar, Union

T = TypeVar('T')

MaybeAwaitable = Union[T, Awaitable[T]]


def generate_id() -> str:
    """Generate a unique command id."""
    return f"cmd_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


async def resolve(result: Any) -> Any:
    """Await ``result`` if it is awaitable, otherwise return it as is."""
    if inspect.isawaitable(result):
        return await result
    return result


@dataclass(frozen=True)
class CommandCapabilities:
    """Which optional operations a command actually implements."""
    mergeable: bool = False
    has_custom_redo: bool = False


class UndoableCommand(Generic[T], ABC):
    """
    Command that supports undo/redo operations.

    Subclasses implement ``execute`` and ``undo``; either may be a plain
    method or a coroutine. Override ``redo`` when replay needs different
    logic than the first execution, and ``merge`` to let rapid
    consecutive commands of the same type coalesce into one undo step.

    Execute via HistoryManager to record the command in a scope.

    Example:
        class RenameFileCommand(UndoableCommand):
            command_type = "rename-file"

            def __init__(self, file, new_name):
                super().__init__(f"Rename to {new_name}")
                self.file = file
                self.old_name = file.name
                self.new_name = new_name

            def execute(self):
                self.file.name = self.new_name

            def undo(self):
                self.file.name = self.old_name
    """

    command_type: str = "command"

    def __init__(self, description: Optional[str] = None,
                 created_at: Optional[float] = None):
        """
        Args:
            description: Label for UI display (default: class name)
            created_at: Creation timestamp in seconds (default: now)
        """
        self._id = generate_id()
        self._description = description
        self._created_at = time.time() if created_at is None else created_at

    @property
    def id(self) -> str:
        return self._id

    @property
    def type(self) -> str:
        """Discriminator used for merge eligibility."""
        return self.command_type

    @property
    def description(self) -> str:
        """Human-readable description for UI display."""
        return self._description or self.__class__.__name__

    @property
    def created_at(self) -> float:
        return self._created_at

    @property
    def capabilities(self) -> CommandCapabilities:
        cls = type(self)
        return CommandCapabilities(
            mergeable=cls.merge is not UndoableCommand.merge,
            has_custom_redo=cls.redo is not UndoableCommand.redo,
        )

    @abstractmethod
    def execute(self) -> MaybeAwaitable[T]:
        """
        Execute the command (forward operation).

        Called once on first run. Redo goes through ``redo``.
        """
        pass

    @abstractmethod
    def undo(self) -> MaybeAwaitable[None]:
        """
        Reverse the command.

        Must restore state to exactly what it was before execute().
        """
        pass

    def redo(self) -> MaybeAwaitable[T]:
        """
        Re-execute the command after undo.

        Default implementation calls execute().
        """
        return self.execute()

    def merge(self, incoming: "UndoableCommand") -> Optional["UndoableCommand"]:
        """
        Fold ``incoming`` into this command.

        Returns the combined command, or None if the two cannot merge.
        The combined command undoes to the state before this command ran
        and applies the end state of ``incoming``.
        """
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.type!r} {self.description!r}>"
