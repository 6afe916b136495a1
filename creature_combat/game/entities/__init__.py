"""Combatant entities, components and move templates."""

from .combatant import Combatant, create_combatant, create_combatant_from_data, load_roster
from .components import (
    HealthComponent, IdentityComponent, LuckComponent, MovesetComponent,
    PositionComponent, StatsComponent, StatusComponent, StatusEffectInstance,
    STAGE_MULTIPLIERS, max_luck_tokens,
)
from .moves import Move, MoveSlot, StatChange, STRUGGLE, get_move, load_move_templates

__all__ = [
    "Combatant",
    "create_combatant",
    "create_combatant_from_data",
    "load_roster",
    "HealthComponent",
    "IdentityComponent",
    "LuckComponent",
    "MovesetComponent",
    "PositionComponent",
    "StatsComponent",
    "StatusComponent",
    "StatusEffectInstance",
    "STAGE_MULTIPLIERS",
    "max_luck_tokens",
    "Move",
    "MoveSlot",
    "StatChange",
    "STRUGGLE",
    "get_move",
    "load_move_templates",
]
