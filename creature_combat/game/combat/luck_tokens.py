"""Luck token rerolls.

A combatant may spend a luck token on a non-positive roll to reroll the
same pool once and keep the better result. Whether it does is decided by a
fixed policy: bad rolls are always rerolled, mediocre ones sometimes.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .dice import AttackRoll, DiceRoller

if TYPE_CHECKING:
    from ..entities.combatant import Combatant


CRITICAL_SITUATION_CHANCE = 0.75

# Chance of spending a token by net successes; anything at or below -3
# always spends, anything above 0 never does.
USE_CHANCE_BY_NET = {
    -2: 0.5,
    -1: 0.4,
    0: 0.25,
}


@dataclass(frozen=True)
class LuckReroll:
    """A spent luck token and the roll it produced."""
    original: AttackRoll
    reroll: AttackRoll
    kept: AttackRoll

    @property
    def improved(self) -> bool:
        return self.kept is self.reroll


def should_use_luck_token(
    combatant: "Combatant",
    roll: AttackRoll,
    dice: DiceRoller,
    critical_situation: bool = False,
) -> bool:
    """Decide whether the combatant spends a token on this roll."""
    if combatant.luck_tokens <= 0:
        return False
    net = roll.net_successes
    if net > 0:
        return False
    if net <= -3:
        return True
    if critical_situation:
        return dice.chance(CRITICAL_SITUATION_CHANCE)
    return dice.chance(USE_CHANCE_BY_NET.get(net, 0.3))


def use_luck_token(
    combatant: "Combatant",
    roll: AttackRoll,
    pool_size: int,
    dice: DiceRoller,
) -> Optional[LuckReroll]:
    """Spend a token and reroll the pool without forcing penalties.

    Returns:
        The reroll record, or None when the combatant has no tokens left
    """
    if not combatant.luck.spend():
        return None
    reroll = dice.roll_pool(pool_size)
    kept = reroll if reroll.net_successes > roll.net_successes else roll
    return LuckReroll(original=roll, reroll=reroll, kept=kept)


def try_luck_reroll(
    combatant: "Combatant",
    roll: AttackRoll,
    pool_size: int,
    dice: DiceRoller,
    critical_situation: bool = False,
) -> Optional[LuckReroll]:
    """Apply the policy and, when it says so, spend a token and reroll."""
    if roll.net_successes > 0:
        return None
    if not should_use_luck_token(combatant, roll, dice, critical_situation):
        return None
    return use_luck_token(combatant, roll, pool_size, dice)
