"""Combat events and their payloads.

Event Design Principles:
- Events are immutable dataclasses with rich object payloads
- All events carry the battle turn they were produced on
- Events use rich objects (Combatant, Move) instead of primitive ids
- Events use proper enums instead of magic strings
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
from abc import ABC
from enum import Enum, auto

from ..data.game_enums import DamageSource, StatName, StatusEffectId, Team, WeatherKind

if TYPE_CHECKING:
    from ...game.entities.combatant import Combatant
    from ...game.entities.moves import Move
    from ...game.combat.dice import AttackRoll
    from ...game.combat.dodge_resolution import DodgeResult
    from ...game.combat.attack_orchestrator import AttackOutcome
    from ...game.managers.log_manager import LogLevel


class EventType(Enum):
    """Types of combat events that systems can subscribe to."""
    # Turn events
    TURN_STARTED = auto()
    TURN_ENDED = auto()

    # Attack lifecycle
    ATTACK_STARTED = auto()
    ATTACK_ROLLED = auto()
    ATTACK_MISSED = auto()
    ATTACK_DODGED = auto()
    ATTACK_RESOLVED = auto()

    # Combatant state
    DAMAGE_APPLIED = auto()   # Every damage application, prevented or not
    COMBATANT_DEFEATED = auto()
    COMBATANT_STOLEN = auto()
    LUCK_TOKENS_REFILLED = auto()
    STATUS_INFLICTED = auto()
    STATUS_CLEARED = auto()
    STAT_CHANGED = auto()

    # Weather
    WEATHER_CHANGED = auto()
    WEATHER_ENDED = auto()

    # Logging
    LOG_MESSAGE = auto()
    DEBUG_MESSAGE = auto()


@dataclass(frozen=True)
class GameEvent(ABC):
    """Base class for all combat events."""
    turn: int
    event_type: EventType = field(init=False)


@dataclass(frozen=True)
class TurnStarted(GameEvent):
    """Event emitted when a combatant's turn begins."""
    combatant: "Combatant"

    def __post_init__(self):
        # Set event_type since dataclass frozen=True prevents normal assignment
        object.__setattr__(self, 'event_type', EventType.TURN_STARTED)


@dataclass(frozen=True)
class TurnEnded(GameEvent):
    """Event emitted when a combatant's turn ends."""
    combatant: "Combatant"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.TURN_ENDED)


@dataclass(frozen=True)
class AttackStarted(GameEvent):
    """Event emitted when an attack session begins resolving."""
    attack_id: str
    attacker: "Combatant"
    target: "Combatant"
    move: "Move"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ATTACK_STARTED)


@dataclass(frozen=True)
class AttackRolled(GameEvent):
    """Event emitted once hit resolution has produced its final roll."""
    attack_id: str
    attacker: "Combatant"
    roll: "AttackRoll"
    threshold: int
    hit: bool
    forced_count: int = 0
    luck_tokens_used: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ATTACK_ROLLED)


@dataclass(frozen=True)
class AttackMissed(GameEvent):
    """Event emitted when an attack fails to clear the hit threshold."""
    attack_id: str
    attacker: "Combatant"
    target: "Combatant"
    net_successes: int
    auto_miss: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ATTACK_MISSED)


@dataclass(frozen=True)
class AttackDodged(GameEvent):
    """Event emitted when the target evades an attack that would have hit."""
    attack_id: str
    attacker: "Combatant"
    target: "Combatant"
    dodge: "DodgeResult"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ATTACK_DODGED)


@dataclass(frozen=True)
class AttackResolved(GameEvent):
    """Event emitted when an attack session completes, whatever the result."""
    outcome: "AttackOutcome"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ATTACK_RESOLVED)


@dataclass(frozen=True)
class DamageApplied(GameEvent):
    """Event emitted for every damage application.

    Prevented damage is still reported with ``final_amount`` 0 and the
    reason it was prevented.
    """
    target: "Combatant"
    amount: int
    final_amount: int
    source_type: DamageSource
    source: Optional["Combatant"] = None
    move: Optional["Move"] = None
    is_critical: bool = False
    effectiveness: float = 1.0
    prevented: bool = False
    reduced_by: int = 0
    prevention_reason: Optional[str] = None
    remaining_hp: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.DAMAGE_APPLIED)


@dataclass(frozen=True)
class CombatantDefeated(GameEvent):
    """Event emitted when a combatant is defeated and leaves the turn order."""
    combatant: "Combatant"
    defeated_by: Optional["Combatant"] = None
    source_type: DamageSource = DamageSource.ATTACK

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBATANT_DEFEATED)


@dataclass(frozen=True)
class CombatantStolen(GameEvent):
    """Event emitted when a finishing blow switches the target to the attacker's team."""
    combatant: "Combatant"
    stolen_by: "Combatant"
    previous_team: Team

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBATANT_STOLEN)


@dataclass(frozen=True)
class LuckTokensRefilled(GameEvent):
    """Event emitted when a combatant's luck tokens are restored to maximum."""
    combatant: "Combatant"
    tokens: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LUCK_TOKENS_REFILLED)


@dataclass(frozen=True)
class StatusInflicted(GameEvent):
    """Event emitted when a status effect is applied."""
    combatant: "Combatant"
    effect_id: StatusEffectId
    source: Optional["Combatant"] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.STATUS_INFLICTED)


@dataclass(frozen=True)
class StatusCleared(GameEvent):
    """Event emitted when a status effect wears off or is removed."""
    combatant: "Combatant"
    effect_id: StatusEffectId

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.STATUS_CLEARED)


@dataclass(frozen=True)
class StatChanged(GameEvent):
    """Event emitted when a stat stage actually changes."""
    combatant: "Combatant"
    stat: StatName
    delta: int
    new_stage: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.STAT_CHANGED)


@dataclass(frozen=True)
class WeatherChanged(GameEvent):
    """Event emitted when the weather is set."""
    previous: WeatherKind
    current: WeatherKind
    duration: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.WEATHER_CHANGED)


@dataclass(frozen=True)
class WeatherEnded(GameEvent):
    """Event emitted when a weather timer runs out."""
    previous: WeatherKind

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.WEATHER_ENDED)


@dataclass(frozen=True)
class LogMessage(GameEvent):
    """Event emitted when a battle narration line is created."""
    message: str
    category: str
    level: "LogLevel"
    source: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_MESSAGE)


@dataclass(frozen=True)
class DebugMessage(GameEvent):
    """Event emitted for debug-specific messages."""
    message: str
    source: str
    context: Optional[dict] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.DEBUG_MESSAGE)
