"""
Core systems: commands and history, events, config, logging.
"""
from .commands import *  # noqa: F401,F403
from .commands import __all__ as _commands_all
from .config import AppConfig, ConfigManager, GeneralSettings, HistorySettings
from .context import current_history, optional_history, provide_history
from .events import Signal
from .logging import setup_logging

__all__ = list(_commands_all) + [
    "AppConfig",
    "ConfigManager",
    "GeneralSettings",
    "HistorySettings",
    "Signal",
    "setup_logging",
    "provide_history",
    "current_history",
    "optional_history",
]
