"""Hit resolution: initial roll, luck token reroll and the forcing loop.

A roll of exactly zero net successes is never accepted as-is. The attacker
is forced to reroll with a penalty that grows by one per tier until the
result is nonzero or the attacker's forcing policy lets it stop. The loop
is capped; hitting the cap turns the attack into an automatic miss.
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from ...core.data import ForcingPolicy, StatName
from ...core.errors import ForcingLimitExceeded
from .dice import AttackRoll
from .luck_tokens import try_luck_reroll

if TYPE_CHECKING:
    from ..battle_session import BattleSession
    from ..entities.combatant import Combatant
    from ..entities.moves import Move


@dataclass
class HitResult:
    """Outcome of hit resolution for one attack."""
    roll: AttackRoll
    threshold: int
    hit: bool
    roll_history: list[AttackRoll] = field(default_factory=list)
    forced_count: int = 0
    luck_tokens_used: int = 0
    auto_miss: bool = False

    @property
    def net_successes(self) -> int:
        return self.roll.net_successes


class HitResolver:
    """Resolves whether an attack clears its target's evasion threshold."""

    def __init__(self, session: "BattleSession"):
        self.session = session

    def _emit_log(self, message: str, category: str = "DICE", level: str = "INFO") -> None:
        self.session.emit_log(message, category, level, source="HitResolver")

    def accuracy_pool(self, attacker: "Combatant") -> int:
        return attacker.stat(StatName.ACCURACY)

    def resolve(
        self,
        attacker: "Combatant",
        move: "Move",
        target: "Combatant",
        accuracy: Optional[int] = None,
    ) -> HitResult:
        """Roll to hit.

        Args:
            attacker: The attacking combatant
            move: The move being used
            target: The target, whose weather evasion sets the threshold
            accuracy: Pool size override (defaults to the accuracy stat)

        Returns:
            HitResult with the final roll and every roll made on the way
        """
        dice = self.session.dice
        pool_size = self.accuracy_pool(attacker) if accuracy is None else accuracy
        threshold = self.session.weather.evasion_threshold(target)

        roll = dice.roll_pool(pool_size)
        history = [roll]
        self._emit_log(
            f"{attacker.name} rolls {pool_size} dice for {move.name}: "
            f"{list(roll.rolls)} = {roll.net_successes} net"
        )

        tokens_before = attacker.luck_tokens
        luck = try_luck_reroll(attacker, roll, pool_size, dice)
        if luck is not None:
            history.append(luck.reroll)
            roll = luck.kept
            self._log_luck(attacker, luck.reroll, luck.improved)

        try:
            roll, forced_count = self._force(attacker, roll, pool_size, history)
        except ForcingLimitExceeded as e:
            self._emit_log(
                f"{attacker.name} could not break the forcing loop and the attack misses",
                "WARNING", "WARNING"
            )
            return HitResult(
                roll=history[-1],
                threshold=threshold,
                hit=False,
                roll_history=history,
                forced_count=e.forced_count,
                luck_tokens_used=tokens_before - attacker.luck_tokens,
                auto_miss=True,
            )
        hit = roll.net_successes >= threshold
        if threshold > 1:
            self._emit_log(
                f"{target.name} is shrouded by the weather ({threshold} successes needed)",
                "BATTLE"
            )
        return HitResult(
            roll=roll,
            threshold=threshold,
            hit=hit,
            roll_history=history,
            forced_count=forced_count,
            luck_tokens_used=tokens_before - attacker.luck_tokens,
        )

    def _force(
        self,
        attacker: "Combatant",
        roll: AttackRoll,
        pool_size: int,
        history: list[AttackRoll],
    ) -> tuple[AttackRoll, int]:
        """Run the forcing loop.

        Returns:
            (final roll, forced reroll count)

        Raises:
            ForcingLimitExceeded: If the reroll cap is reached with net still 0
        """
        policy = attacker.identity.forcing_policy
        dice = self.session.dice
        cap = self.session.rules.max_forced_rerolls
        forced_count = 0
        luck_spent = False

        while roll.net_successes == 0:
            if forced_count >= cap:
                raise ForcingLimitExceeded(attacker.name, forced_count)
            forced_count += 1
            self._emit_log(f"{attacker.name} rolled exactly 0 net successes and is forced to reroll")

            roll = dice.roll_forced(pool_size, forced_count)
            history.append(roll)
            self._emit_log(
                f"Forced roll ({forced_count}): {list(roll.rolls)} with penalty "
                f"{forced_count} = {roll.net_successes} net"
            )

            if roll.net_successes < 0 and not luck_spent:
                luck = try_luck_reroll(attacker, roll, pool_size, dice)
                if luck is not None:
                    luck_spent = True
                    history.append(luck.reroll)
                    roll = luck.kept
                    self._log_luck(attacker, luck.reroll, luck.improved)

            if policy == ForcingPolicy.ONCE and forced_count >= 1:
                break
            if policy == ForcingPolicy.DYNAMIC and forced_count >= pool_size // 4 + 1:
                break
            if policy == ForcingPolicy.NEVER:
                break

        return roll, forced_count

    def _log_luck(self, combatant: "Combatant", reroll: AttackRoll, improved: bool) -> None:
        outcome = "the new roll counts" if improved else "the original roll was better"
        self._emit_log(
            f"{combatant.name} spends a luck token! New roll: {list(reroll.rolls)} = "
            f"{reroll.net_successes} net, {outcome}",
            "BATTLE"
        )
