"""
Bindable Property Descriptor.

Emits Qt signals when a view model property changes, so widgets can bind
to history state without polling.

Usage:
    class ToolbarViewModel(BindableBase):
        canUndoChanged = Signal(bool)
        canUndo = BindableProperty(default=False)

    vm.canUndo = True  # emits canUndoChanged(True) and propertyChanged("canUndo", True)
"""
from typing import Any, Callable, Generic, Optional, TypeVar
from PySide6.QtCore import QObject, Signal

T = TypeVar('T')


class BindableProperty(Generic[T]):
    """
    Descriptor that emits a signal when the property value changes.

    Args:
        default: Value returned before the property is first set.
        signal_name: Specific signal to emit. Defaults to "{property_name}Changed".
        coerce: Optional callable applied to every assigned value.
    """

    def __init__(
        self,
        default: T = None,
        signal_name: Optional[str] = None,
        coerce: Optional[Callable[[Any], T]] = None
    ):
        self.default = default
        self._signal_name = signal_name
        self.coerce = coerce
        self._attr_name: str = ""
        self._public_name: str = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self._public_name = name
        self._attr_name = f"_bindable_{name}"
        # Qt signals can't be added after class creation; the owner declares them.
        if not self._signal_name:
            self._signal_name = f"{name}Changed"

    def __get__(self, obj: Optional[QObject], objtype: type = None) -> T:
        if obj is None:
            return self  # type: ignore
        return getattr(obj, self._attr_name, self.default)

    def __set__(self, obj: QObject, value: Any) -> None:
        if self.coerce is not None:
            value = self.coerce(value)

        if getattr(obj, self._attr_name, self.default) == value:
            return
        setattr(obj, self._attr_name, value)

        specific_signal = getattr(obj, self._signal_name, None)
        if specific_signal is not None and callable(getattr(specific_signal, 'emit', None)):
            specific_signal.emit(value)

        notify = getattr(obj, 'notify_property_changed', None)
        if callable(notify):
            notify(self._public_name, value)


class BindableBase(QObject):
    """
    Base class for view models with property change notification.

    Provides a generic ``propertyChanged(name, value)`` signal; subclasses
    declare specific ``<name>Changed`` signals for the properties they bind.
    """

    propertyChanged = Signal(str, object)

    def notify_property_changed(self, property_name: str, value: Any) -> None:
        """Emit the generic change notification; BindableProperty routes through here."""
        self.propertyChanged.emit(property_name, value)
