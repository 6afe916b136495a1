"""Battle-scoped managers.

This package contains the managers that coordinate battle-wide concerns
through the event-driven architecture.
"""

from .log_manager import LogManager, LogLevel, LogCategory, LogEntry
from .weather_manager import WeatherManager

__all__ = [
    "LogManager",
    "LogLevel",
    "LogCategory",
    "LogEntry",
    "WeatherManager",
]
