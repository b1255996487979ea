"""
Unit Tests for the bindable property descriptor.
"""
from unittest.mock import MagicMock

from PySide6.QtCore import Signal

from undoscope.ui.mvvm.bindable import BindableBase, BindableProperty


class TestBindableProperty:

    def test_default_value(self, qapp):
        class TestVM(BindableBase):
            name = BindableProperty(default="default_name")

        vm = TestVM()
        assert vm.name == "default_name"

    def test_emits_property_changed(self, qapp):
        class TestVM(BindableBase):
            count = BindableProperty(default=0)

        vm = TestVM()
        callback = MagicMock()
        vm.propertyChanged.connect(callback)

        vm.count = 42

        callback.assert_called_once_with("count", 42)

    def test_emits_specific_signal(self, qapp):
        class TestVM(BindableBase):
            countChanged = Signal(int)
            count = BindableProperty(default=0)

        vm = TestVM()
        callback = MagicMock()
        vm.countChanged.connect(callback)

        vm.count = 7

        callback.assert_called_once_with(7)

    def test_no_signal_when_value_unchanged(self, qapp):
        class TestVM(BindableBase):
            count = BindableProperty(default=0)

        vm = TestVM()
        callback = MagicMock()
        vm.propertyChanged.connect(callback)

        vm.count = 0

        callback.assert_not_called()

    def test_coerce(self, qapp):
        class TestVM(BindableBase):
            label = BindableProperty(default="", coerce=lambda v: v or "")

        vm = TestVM()
        vm.label = "x"
        vm.label = None

        assert vm.label == ""

    def test_notifications_route_through_base(self, qapp):
        class TestVM(BindableBase):
            count = BindableProperty(default=0)

            def __init__(self):
                super().__init__()
                self.notified = []

            def notify_property_changed(self, property_name, value):
                self.notified.append((property_name, value))
                super().notify_property_changed(property_name, value)

        vm = TestVM()
        callback = MagicMock()
        vm.propertyChanged.connect(callback)

        vm.count = 3

        assert vm.notified == [("count", 3)]
        callback.assert_called_once_with("count", 3)

    def test_manual_notification(self, qapp):
        vm = BindableBase()
        callback = MagicMock()
        vm.propertyChanged.connect(callback)

        vm.notify_property_changed("computed", "value")

        callback.assert_called_once_with("computed", "value")
