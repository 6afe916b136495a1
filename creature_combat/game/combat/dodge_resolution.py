"""Dodge resolution.

After a hit the target may try to step out of the way. It rolls its evasion
pool against the attacker's net successes and needs strictly more to
succeed. A successful dodge also needs somewhere to go: without a free tile
it degrades to a failure. A dodge that goes badly wrong hands the attacker
extra net successes.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from ...core.data import StatName, StatusEffectId, Vector2
from .dice import AttackRoll
from .luck_tokens import try_luck_reroll

if TYPE_CHECKING:
    from ..battle_session import BattleSession
    from ..entities.combatant import Combatant
    from ..entities.moves import Move


# Chance that paralysis keeps a target from reacting at all
PARALYSIS_DODGE_BLOCK_CHANCE = 0.3

# Statuses that rule out both reactions and dodging
IMMOBILIZING_STATUSES = {
    StatusEffectId.FROZEN: "is frozen",
    StatusEffectId.SNARED: "is snared",
    StatusEffectId.ASLEEP: "is asleep",
}


@dataclass(frozen=True)
class DodgeResult:
    """Outcome of a dodge attempt."""
    success: bool
    roll: Optional[AttackRoll] = None
    tile: Optional[Vector2] = None
    reaction_triggered: bool = False
    reaction_move: Optional["Move"] = None
    blocked_reason: Optional[str] = None

    @property
    def botch_bonus(self) -> int:
        """Net successes a failed, negative dodge hands to the attacker."""
        if self.success or self.reaction_triggered or self.roll is None:
            return 0
        if self.roll.net_successes < 0:
            return abs(self.roll.net_successes)
        return 0


class DodgeResolver:
    """Opposed dodge rolls for targets that were hit."""

    def __init__(self, session: "BattleSession"):
        self.session = session

    def _emit_log(self, message: str, category: str = "BATTLE", level: str = "INFO") -> None:
        self.session.emit_log(message, category, level, source="DodgeResolver")

    def evasion_pool(self, target: "Combatant") -> int:
        return target.stat(StatName.EVASION)

    def can_dodge(self, target: "Combatant") -> Optional[str]:
        """Check whether a status keeps the target from moving.

        Returns:
            A reason string when the target cannot dodge, None otherwise
        """
        for effect_id, reason in IMMOBILIZING_STATUSES.items():
            if target.has_status(effect_id):
                return reason
        if target.has_status(StatusEffectId.PARALYZED):
            if self.session.dice.chance(PARALYSIS_DODGE_BLOCK_CHANCE):
                return "is paralyzed"
        return None

    def attempt_dodge(
        self,
        attacker: "Combatant",
        target: "Combatant",
        attack_roll: AttackRoll,
        move: "Move",
        critical_situation: bool = False,
    ) -> DodgeResult:
        """Let the target try to evade a hit.

        Args:
            attacker: The attacking combatant
            target: The combatant that was hit
            attack_roll: The attacker's final roll
            move: The incoming move (ranged moves restrict the escape tiles)
            critical_situation: Whether the hit is about to be critical,
                which makes the target keener to spend a luck token

        Returns:
            DodgeResult describing the attempt
        """
        blocked = self.can_dodge(target)
        if blocked is not None:
            self._emit_log(f"{target.name} {blocked} and can neither react nor dodge!")
            return DodgeResult(success=False, blocked_reason=blocked)

        reaction = self.session.reactions.try_trigger_reaction(target, attacker, move)
        if reaction.triggered:
            self._emit_log(f"{target.name} reacts instead of dodging!")
            return DodgeResult(
                success=False,
                reaction_triggered=True,
                reaction_move=reaction.reaction_move,
            )

        dice = self.session.dice
        pool_size = self.evasion_pool(target)
        roll = dice.roll_pool(pool_size)
        self._emit_log(
            f"{target.name} tries to dodge: {list(roll.rolls)} - {roll.successes} successes, "
            f"{roll.failures} failures = {roll.net_successes} net",
            "DICE"
        )

        if roll.net_successes <= attack_roll.net_successes:
            luck = try_luck_reroll(target, roll, pool_size, dice, critical_situation)
            if luck is not None:
                roll = luck.kept
                self._emit_log(
                    f"{target.name} spends a luck token on the dodge! "
                    f"New roll: {list(luck.reroll.rolls)} = {luck.reroll.net_successes} net",
                    "DICE"
                )

        if roll.net_successes <= attack_roll.net_successes:
            if roll.net_successes < 0:
                self._emit_log(
                    f"{target.name} stumbles! {attacker.name} gains "
                    f"{abs(roll.net_successes)} extra net successes"
                )
            return DodgeResult(success=False, roll=roll)

        tiles = self.session.positioning.available_dodge_tiles(target, attacker, move.ranged)
        if not tiles:
            self._emit_log(f"{target.name} would have dodged but has nowhere to go!")
            return DodgeResult(success=False, roll=roll, blocked_reason="no free tile")

        tile = dice.choose(tiles)
        self._emit_log(f"{target.name} dodges to {tile}!")
        return DodgeResult(success=True, roll=roll, tile=tile)

    def execute_dodge(self, target: "Combatant", result: DodgeResult) -> None:
        """Move a successful dodger onto its chosen tile."""
        if result.success and result.tile is not None:
            target.position = result.tile
