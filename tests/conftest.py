import os

import pytest

from undoscope.core.commands import HistoryManager

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class Document:
    """Plain object used as a mutation target in tests."""

    def __init__(self, title="Untitled", color="black"):
        self.title = title
        self.color = color


@pytest.fixture
def manager():
    """Fresh, isolated history manager for each test."""
    return HistoryManager()


@pytest.fixture
def doc():
    return Document()


# Ensure QApplication exists for Qt tests
@pytest.fixture(scope="module")
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app
