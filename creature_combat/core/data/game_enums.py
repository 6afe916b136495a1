"""Centralized combat enums and constants.

This module contains the enums shared across the combat engine, giving a
single source of truth for teams, weather, moves, statuses and attack phases.
Enums whose members appear in YAML data use string values so templates can
refer to them by name.
"""

from enum import Enum, auto


class Team(Enum):
    """Team affiliations for combatants."""
    PLAYER = 0
    ENEMY = 1
    ALLY = 2
    NEUTRAL = 3


class ComponentType(Enum):
    """Component types making up a combatant entity."""
    IDENTITY = auto()
    HEALTH = auto()
    STATS = auto()
    STATUS = auto()
    LUCK = auto()
    MOVESET = auto()
    POSITION = auto()


class WeatherKind(Enum):
    """Battlefield-wide weather conditions."""
    NONE = "none"
    SUN = "sun"
    RAIN = "rain"
    SANDSTORM = "sandstorm"
    SNOW = "snow"
    HAIL = "hail"
    FOG = "fog"


class MoveCategory(Enum):
    """Damage category of a move."""
    PHYSICAL = "physical"
    SPECIAL = "special"
    STATUS = "status"


class MoveBehavior(Enum):
    """Special behavior tag interpreted by the move effect dispatcher."""
    NONE = "none"
    RECOIL = "recoil"
    MULTI_HIT = "multi-hit"
    CONE = "cone"
    STATUS_INFLICT = "status-inflict"
    REACTION_ONLY = "reaction-only"
    STAT_CHANGE = "stat-change"
    WEATHER = "weather"


class StatName(Enum):
    """Stats tracked in a combatant's stat block."""
    ATTACK = "attack"
    DEFENSE = "defense"
    SPECIAL_ATTACK = "special-attack"
    SPECIAL_DEFENSE = "special-defense"
    INITIATIVE = "initiative"
    ACCURACY = "accuracy"
    EVASION = "evasion"


class StatusEffectId(Enum):
    """Persistent status conditions."""
    POISONED = "poisoned"
    BADLY_POISONED = "badly-poisoned"
    BURNED = "burned"
    ASLEEP = "asleep"
    PARALYZED = "paralyzed"
    FROZEN = "frozen"
    CONFUSED = "confused"
    CURSED = "cursed"
    INFATUATED = "infatuated"
    HELD = "held"
    SEEDED = "seeded"
    SNARED = "snared"


class ForcingPolicy(Enum):
    """How aggressively a combatant rerolls a zero-net attack roll."""
    ALWAYS = "always"
    ONCE = "once"
    DYNAMIC = "dynamic"
    NEVER = "never"


class AttackerStrategy(Enum):
    """Combat strategy, only relevant where it feeds damage calculation."""
    STANDARD = "standard"
    AGGRESSIVE = "aggressive"
    OPPORTUNISTIC = "opportunistic"
    PRECISION = "precision"
    DEFENSIVE = "defensive"


class TrainerClass(Enum):
    """Trainer classes that modify combat rules."""
    ACE_TRAINER = "ace-trainer"
    BRAWLER = "brawler"
    THIEF = "thief"


class StatChangeTarget(Enum):
    """Who receives a move's stat change."""
    SELF = "self"
    TARGET = "target"


class DamageSource(Enum):
    """Origin of a damage application."""
    ATTACK = auto()
    RECOIL = auto()
    STATUS = auto()
    WEATHER = auto()
    TERRAIN = auto()
    SELF_DESTRUCT = auto()
    CONFUSION = auto()
    CURSE = auto()
    LEECH_SEED = auto()
    TRAP = auto()
    INDIRECT = auto()
    ABILITY = auto()


class AttackPhase(Enum):
    """Phases an attack session moves through."""
    SELECTING = auto()
    ROLLING_HIT = auto()
    MISSED = auto()
    DODGING = auto()
    DODGED = auto()
    HITTING = auto()
    RESOLVED = auto()
    COMPLETED = auto()


class AttackStatus(Enum):
    """Final disposition of an attack request."""
    COMPLETED = auto()
    INVALID_TARGET = auto()
    CANNOT_ATTACK = auto()
    BLOCKED = auto()
    CANCELLED = auto()


# Display name mappings
TEAM_NAMES = {
    Team.PLAYER: "Player",
    Team.ENEMY: "Enemy",
    Team.ALLY: "Ally",
    Team.NEUTRAL: "Neutral"
}

WEATHER_NAMES = {
    WeatherKind.NONE: "Clear",
    WeatherKind.SUN: "Harsh Sunlight",
    WeatherKind.RAIN: "Rain",
    WeatherKind.SANDSTORM: "Sandstorm",
    WeatherKind.SNOW: "Snow",
    WeatherKind.HAIL: "Hail",
    WeatherKind.FOG: "Fog"
}

STATUS_EFFECT_NAMES = {
    StatusEffectId.POISONED: "Poisoned",
    StatusEffectId.BADLY_POISONED: "Badly Poisoned",
    StatusEffectId.BURNED: "Burned",
    StatusEffectId.ASLEEP: "Asleep",
    StatusEffectId.PARALYZED: "Paralyzed",
    StatusEffectId.FROZEN: "Frozen",
    StatusEffectId.CONFUSED: "Confused",
    StatusEffectId.CURSED: "Cursed",
    StatusEffectId.INFATUATED: "Infatuated",
    StatusEffectId.HELD: "Held",
    StatusEffectId.SEEDED: "Seeded",
    StatusEffectId.SNARED: "Snared"
}

STAT_NAMES = {
    StatName.ATTACK: "Attack",
    StatName.DEFENSE: "Defense",
    StatName.SPECIAL_ATTACK: "Sp. Attack",
    StatName.SPECIAL_DEFENSE: "Sp. Defense",
    StatName.INITIATIVE: "Initiative",
    StatName.ACCURACY: "Accuracy",
    StatName.EVASION: "Evasion"
}
