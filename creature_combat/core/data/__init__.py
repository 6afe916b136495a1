"""Core data structures and definitions.

This package contains fundamental data types and rule tables:
- data_structures.py: Vector2 grid coordinates
- game_enums.py: Centralized enums for teams, weather, moves and statuses
- type_chart.py: Type effectiveness matrix and stat lookups
- rules_config.py: Tunable combat rules loaded from YAML
"""

from .data_structures import Vector2, round_half_up
from .game_enums import (
    Team, ComponentType, WeatherKind, MoveCategory, MoveBehavior, StatName,
    StatusEffectId, ForcingPolicy, AttackerStrategy, TrainerClass,
    StatChangeTarget, DamageSource, AttackPhase, AttackStatus,
    TEAM_NAMES, WEATHER_NAMES, STATUS_EFFECT_NAMES, STAT_NAMES,
)
from .type_chart import (
    TYPE_ORDER, get_type_effectiveness, effectiveness_description, stats_for_category,
)
from .rules_config import CombatRules, load_combat_rules

__all__ = [
    "Vector2",
    "round_half_up",
    "Team",
    "ComponentType",
    "WeatherKind",
    "MoveCategory",
    "MoveBehavior",
    "StatName",
    "StatusEffectId",
    "ForcingPolicy",
    "AttackerStrategy",
    "TrainerClass",
    "StatChangeTarget",
    "DamageSource",
    "AttackPhase",
    "AttackStatus",
    "TEAM_NAMES",
    "WEATHER_NAMES",
    "STATUS_EFFECT_NAMES",
    "STAT_NAMES",
    "TYPE_ORDER",
    "get_type_effectiveness",
    "effectiveness_description",
    "stats_for_category",
    "CombatRules",
    "load_combat_rules",
]
