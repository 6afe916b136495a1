"""Game layer: combatants, combat resolution and battle managers."""

from .battle_session import BattleSession
from .positioning import GridPositioning

__all__ = [
    "BattleSession",
    "GridPositioning",
]
