"""Contracts for the collaborators the combat engine consumes.

The engine never inspects positioning, presentation or reaction internals.
It only calls the methods below. Default implementations that do nothing
are provided for presentation and reactions so a battle can run headless.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, TYPE_CHECKING

from .data.data_structures import Vector2

if TYPE_CHECKING:
    from ..game.entities.combatant import Combatant
    from ..game.entities.moves import Move
    from ..game.combat.attack_orchestrator import AttackOutcome


class PositioningService(Protocol):
    """Spatial queries answered by the placement/movement system."""

    def min_distance(self, a: "Combatant", b: "Combatant") -> int:
        ...

    def occupies_tile(self, combatant: "Combatant", y: int, x: int) -> bool:
        ...

    def available_dodge_tiles(
        self, target: "Combatant", attacker: "Combatant", is_ranged: bool
    ) -> list[Vector2]:
        ...

    def line_of_sight_blocked(self, a: "Combatant", b: "Combatant") -> bool:
        ...


class PresentationHooks(Protocol):
    """Completion signals from the visual layer.

    The engine awaits these and never looks at visual state.
    """

    async def on_attack_animation_complete(self, outcome: "AttackOutcome") -> None:
        ...

    async def on_projectile_resolved(self, outcome: "AttackOutcome") -> None:
        ...


@dataclass(frozen=True)
class ReactionResult:
    """Answer from the reaction system for an incoming attack."""
    triggered: bool
    reaction_move: Optional["Move"] = None


class ReactionSystem(Protocol):
    """Lets a target answer an incoming attack with a reaction move."""

    def try_trigger_reaction(
        self, target: "Combatant", attacker: "Combatant", move: "Move"
    ) -> ReactionResult:
        ...


class NullPresentation:
    """Presentation hooks for headless battles. Every signal resolves at once."""

    async def on_attack_animation_complete(self, outcome: "AttackOutcome") -> None:
        return None

    async def on_projectile_resolved(self, outcome: "AttackOutcome") -> None:
        return None


class NoReactions:
    """Reaction system that never triggers."""

    def try_trigger_reaction(
        self, target: "Combatant", attacker: "Combatant", move: "Move"
    ) -> ReactionResult:
        return ReactionResult(triggered=False)
