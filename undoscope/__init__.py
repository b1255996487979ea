"""
undoscope - Scoped command history (undo/redo) engine.

Records reversible, possibly async operations per named scope, coalesces
rapid edits and keeps history bounded. Qt bindings live in undoscope.ui
and are imported separately so the core has no Qt dependency.
"""
from undoscope.core import *  # noqa: F401,F403
from undoscope.core import __all__ as _core_all

__version__ = "0.1.0"

__all__ = list(_core_all) + ["__version__"]
