"""
Battle log management.

Combat systems never write narration directly. They publish LogMessage
events and the LogManager collects them with categorization, level
filtering and bounded storage.
"""
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Callable, Iterable, Optional, Union

from ...core.events import DebugMessage, EventManager, EventType, LogMessage


class LogCategory(Enum):
    SYSTEM = auto()   # Session setup and teardown
    BATTLE = auto()   # Attack narration
    DICE = auto()     # Roll details, luck tokens, forcing
    WEATHER = auto()  # Weather changes and periodic effects
    STATUS = auto()   # Status effects and stat stages
    DEFEAT = auto()   # Defeats and rewards
    DEBUG = auto()
    WARNING = auto()
    ERROR = auto()


CATEGORY_TAGS = {
    LogCategory.SYSTEM: "SYS",
    LogCategory.BATTLE: "BTL",
    LogCategory.DICE: "DIE",
    LogCategory.WEATHER: "WTH",
    LogCategory.STATUS: "STS",
    LogCategory.DEFEAT: "DEF",
    LogCategory.DEBUG: "DBG",
    LogCategory.WARNING: "WRN",
    LogCategory.ERROR: "ERR",
}

# Categories whose lines are shown only at or above a fixed level,
# whatever level the publisher gave them
CATEGORY_MIN_LEVELS = {
    "DEBUG": "DEBUG",
    "DICE": "DEBUG",
    "WARNING": "WARNING",
    "ERROR": "ERROR",
}


class LogLevel(Enum):
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass
class LogEntry:
    """One line of battle narration."""
    text: str
    category: LogCategory
    level: LogLevel = LogLevel.INFO
    turn: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def format(
        self,
        include_timestamp: bool = False,
        include_category: bool = True,
        include_turn: bool = False,
    ) -> str:
        prefix = []
        if include_timestamp:
            prefix.append(self.timestamp.strftime("[%H:%M:%S]"))
        if include_turn:
            prefix.append(f"T{self.turn:03d}")
        if include_category:
            prefix.append(f"[{CATEGORY_TAGS.get(self.category, '???')}]")
        return " ".join(prefix + [self.text])


def parse_log_level(level: Union[LogLevel, str, None]) -> LogLevel:
    """Accept a LogLevel or its case-insensitive name; anything else is INFO."""
    if isinstance(level, LogLevel):
        return level
    return LogLevel.__members__.get(str(level).upper(), LogLevel.INFO)


def parse_category(category: Union[LogCategory, str, None]) -> LogCategory:
    if isinstance(category, LogCategory):
        return category
    return LogCategory.__members__.get(str(category).upper(), LogCategory.SYSTEM)


class LogManager:
    """Collects battle narration from the event bus and filters it for display.

    Every entry is stored; visibility is decided when the log is read. An
    entry is visible when its category is enabled and its effective level
    (the category's fixed minimum if it has one, else the entry's own) is
    at or above the current log level.

    Args:
        event_manager: Bus delivering LogMessage and DebugMessage events
        max_messages: Oldest entries are dropped beyond this many
        default_level: Initial display level
        echo: Called with each visible line as it arrives
    """

    def __init__(
        self,
        event_manager: EventManager,
        max_messages: int = 1000,
        default_level: LogLevel = LogLevel.INFO,
        echo: Optional[Callable[[str], None]] = None,
    ):
        self.messages: deque[LogEntry] = deque(maxlen=max_messages)
        self.log_level = default_level
        self.enabled_categories = set(LogCategory)
        self.category_levels = {
            LogCategory[category]: LogLevel[level]
            for category, level in CATEGORY_MIN_LEVELS.items()
        }
        self.event_manager = event_manager
        self.echo = echo

        event_manager.subscribe(
            EventType.LOG_MESSAGE, self._on_log_message, subscriber_name="LogManager.log_message"
        )
        event_manager.subscribe(
            EventType.DEBUG_MESSAGE, self._on_debug_message, subscriber_name="LogManager.debug_message"
        )

    def _on_log_message(self, event: LogMessage) -> None:
        self._store(LogEntry(
            text=event.message,
            category=parse_category(event.category),
            level=parse_log_level(event.level),
            turn=event.turn,
        ))

    def _on_debug_message(self, event: DebugMessage) -> None:
        self._store(LogEntry(
            text=f"[{event.source}] {event.message}",
            category=LogCategory.DEBUG,
            level=LogLevel.DEBUG,
            turn=event.turn,
        ))

    def _store(self, entry: LogEntry) -> None:
        self.messages.append(entry)
        if self.echo is not None and self._is_visible(entry):
            self.echo(entry.format())

    def _is_visible(self, entry: LogEntry) -> bool:
        if entry.category not in self.enabled_categories:
            return False
        effective = self.category_levels.get(entry.category, entry.level)
        return effective.value >= self.log_level.value

    # ============== Direct logging ==============

    def log(self, text: str, category: LogCategory = LogCategory.SYSTEM,
            level: LogLevel = LogLevel.INFO, turn: int = 0) -> None:
        """Store a line without going through the event bus."""
        self._store(LogEntry(text=text, category=category, level=level, turn=turn))

    def system(self, text: str) -> None:
        self.log(text, LogCategory.SYSTEM)

    def warning(self, text: str) -> None:
        self.log(text, LogCategory.WARNING, LogLevel.WARNING)

    def error(self, text: str) -> None:
        self.log(text, LogCategory.ERROR, LogLevel.ERROR)

    # ============== Queries ==============

    def get_messages(
        self,
        count: Optional[int] = None,
        categories: Optional[Iterable[LogCategory]] = None,
    ) -> list[LogEntry]:
        """Stored entries, oldest first.

        Args:
            count: Keep only the newest ``count`` entries
            categories: Return these enabled categories regardless of level;
                when omitted, return what the current filters make visible
        """
        if categories:
            wanted = set(categories) & self.enabled_categories
            selected = [entry for entry in self.messages if entry.category in wanted]
        else:
            selected = [entry for entry in self.messages if self._is_visible(entry)]
        if count is not None:
            return selected[-count:] if count > 0 else []
        return selected

    def get_battle_log(self, include_category: bool = False) -> list[str]:
        """Visible narration lines as plain strings."""
        return [entry.format(include_category=include_category) for entry in self.get_messages()]

    def get_turn_log(self, turn: int) -> list[str]:
        """Visible lines stored during one turn."""
        return [entry.text for entry in self.get_messages() if entry.turn == turn]

    def category_counts(self) -> dict[LogCategory, int]:
        """How many entries of each category are stored, visible or not."""
        return dict(Counter(entry.category for entry in self.messages))

    def clear(self) -> None:
        self.messages.clear()

    # ============== Filters ==============

    def enable_category(self, category: LogCategory) -> None:
        self.enabled_categories.add(category)

    def disable_category(self, category: LogCategory) -> None:
        self.enabled_categories.discard(category)

    def set_log_level(self, level: Union[LogLevel, str]) -> None:
        self.log_level = parse_log_level(level)

    def is_debug_enabled(self) -> bool:
        return self.log_level == LogLevel.DEBUG and LogCategory.DEBUG in self.enabled_categories

    def toggle_debug(self) -> None:
        """Switch between the INFO view and the full DEBUG view with dice details."""
        if self.is_debug_enabled():
            self.disable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.INFO)
        else:
            self.enable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.DEBUG)
