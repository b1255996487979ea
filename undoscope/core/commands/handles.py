"""
Target handles for property commands.

A handle names the owner of a mutable value and the key within it, so a
command states explicitly which structure it mutates instead of hiding
it in a closure.
"""
from collections.abc import MutableMapping
from typing import Any, Hashable


_MISSING = object()


class PropertyHandle:
    """
    Read/write access to ``owner[key]`` or ``owner.key``.

    Mappings use item access, every other object uses attribute access.

    Example:
        handle = PropertyHandle(window, "title")
        handle.set("Untitled")
        handle.get()  # "Untitled"
    """

    __slots__ = ("owner", "key")

    def __init__(self, owner: Any, key: Hashable):
        self.owner = owner
        self.key = key

    @property
    def is_mapping(self) -> bool:
        return isinstance(self.owner, MutableMapping)

    @property
    def name(self) -> str:
        return str(self.key)

    def exists(self) -> bool:
        if self.is_mapping:
            return self.key in self.owner
        return hasattr(self.owner, self.key)

    def get(self, default: Any = None) -> Any:
        if self.is_mapping:
            return self.owner.get(self.key, default)
        return getattr(self.owner, self.key, default)

    def set(self, value: Any) -> None:
        if self.is_mapping:
            self.owner[self.key] = value
        else:
            setattr(self.owner, self.key, value)

    def delete(self) -> None:
        if self.is_mapping:
            self.owner.pop(self.key, None)
        elif hasattr(self.owner, self.key):
            delattr(self.owner, self.key)

    def snapshot(self) -> Any:
        """Current value, or a sentinel when the key is absent."""
        return self.get(_MISSING) if self.exists() else _MISSING

    def restore(self, value: Any) -> None:
        """Write back a value taken by ``snapshot``."""
        if value is _MISSING:
            self.delete()
        else:
            self.set(value)

    def same_target(self, other: "PropertyHandle") -> bool:
        return self.owner is other.owner and self.key == other.key

    def __repr__(self) -> str:
        return f"PropertyHandle({type(self.owner).__name__}, {self.key!r})"
