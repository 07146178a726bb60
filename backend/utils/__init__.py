"""
BuildWatch Backend Utilities Package.

Common utilities shared across all backend modules.
Requires Python 3.11+.
"""

from utils.config import LoggingSettings, Settings, WatcherSettings, get_settings
from utils.logger import configure_logging, get_logger, LoggerMixin

__all__ = [
    "Settings",
    "WatcherSettings",
    "LoggingSettings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggerMixin",
]
