"""Event system for publisher-subscriber communication.

This package contains the event-driven plumbing of the combat engine:
- event_manager.py: Publisher-subscriber event routing
- events.py: Event definitions for inter-system communication
"""

from .event_manager import EventManager, EventPriority, QueuedEvent, Subscription
from .events import (
    GameEvent,
    EventType,
    TurnStarted,
    TurnEnded,
    AttackStarted,
    AttackRolled,
    AttackMissed,
    AttackDodged,
    AttackResolved,
    DamageApplied,
    CombatantDefeated,
    CombatantStolen,
    LuckTokensRefilled,
    StatusInflicted,
    StatusCleared,
    StatChanged,
    WeatherChanged,
    WeatherEnded,
    LogMessage,
    DebugMessage,
)

__all__ = [
    "EventManager",
    "EventPriority",
    "QueuedEvent",
    "Subscription",
    "GameEvent",
    "EventType",
    "TurnStarted",
    "TurnEnded",
    "AttackStarted",
    "AttackRolled",
    "AttackMissed",
    "AttackDodged",
    "AttackResolved",
    "DamageApplied",
    "CombatantDefeated",
    "CombatantStolen",
    "LuckTokensRefilled",
    "StatusInflicted",
    "StatusCleared",
    "StatChanged",
    "WeatherChanged",
    "WeatherEnded",
    "LogMessage",
    "DebugMessage",
]
