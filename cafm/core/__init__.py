"""Core application modules."""

from .config import Settings, get_settings, settings
from .logging import get_logger, setup_logging
from .background_tasks import BackgroundTaskManager, ExecutionMode

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "get_logger",
    "setup_logging",
    "BackgroundTaskManager",
    "ExecutionMode",
]
