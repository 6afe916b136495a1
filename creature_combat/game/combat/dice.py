"""Dice pool primitives.

Every random draw in a battle goes through a DiceRoller so that a seeded
generator reproduces a whole battle. Pools are rolled as numpy arrays and
counted with vectorized comparisons.
"""

from dataclasses import dataclass, replace
from typing import Optional, Sequence, TypeVar

import numpy as np

from ...core.data.rules_config import CombatRules

T = TypeVar("T")


@dataclass(frozen=True)
class AttackRoll:
    """Result of an opposed dice pool roll."""
    rolls: tuple[int, ...]
    successes: int
    failures: int
    net_successes: int
    raw_net_successes: int
    penalty: int = 0

    @property
    def pool_size(self) -> int:
        return len(self.rolls)

    def with_bonus(self, bonus: int) -> "AttackRoll":
        """Copy of this roll with extra net successes (e.g. a botched dodge)."""
        return replace(self, net_successes=self.net_successes + bonus)


@dataclass(frozen=True)
class DamageRoll:
    """Result of a damage variance roll."""
    rolls: tuple[int, ...]
    total: int


class DiceRoller:
    """Rolls dice pools against the session's rules.

    Args:
        rules: Dice faces and thresholds
        seed: Seed for a fresh numpy Generator
        rng: Pre-built generator, takes precedence over ``seed``
    """

    def __init__(
        self,
        rules: Optional[CombatRules] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.rules = rules or CombatRules()
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    def _roll_dice(self, count: int) -> np.ndarray:
        if count <= 0:
            return np.empty(0, dtype=np.int64)
        return np.asarray(self._rng.integers(1, self.rules.dice_sides + 1, size=count))

    def roll_pool(self, pool_size: int) -> AttackRoll:
        """Roll a pool and count successes and failures.

        A pool of size 0 (or less) is legal and yields net 0 with no dice.
        """
        faces = self._roll_dice(pool_size)
        successes = int(np.count_nonzero(faces >= self.rules.success_threshold))
        failures = int(np.count_nonzero(faces <= self.rules.failure_threshold))
        net = successes - failures
        return AttackRoll(
            rolls=tuple(int(face) for face in faces),
            successes=successes,
            failures=failures,
            net_successes=net,
            raw_net_successes=net,
        )

    def roll_forced(self, pool_size: int, forced_count: int) -> AttackRoll:
        """Reroll a full pool with a penalty equal to the forcing tier."""
        roll = self.roll_pool(pool_size)
        return replace(
            roll,
            net_successes=roll.raw_net_successes - forced_count,
            penalty=forced_count,
        )

    def roll_damage(self, dice_count: int) -> DamageRoll:
        """Sum a pool of dice. A pool of size 0 yields 0."""
        faces = self._roll_dice(dice_count)
        return DamageRoll(rolls=tuple(int(face) for face in faces), total=int(faces.sum()))

    def chance(self, probability: float) -> bool:
        """Bernoulli draw with the given success probability."""
        if probability <= 0:
            return False
        if probability >= 1:
            return True
        return bool(self._rng.random() < probability)

    def choose(self, options: Sequence[T]) -> T:
        """Pick one option uniformly at random.

        Raises:
            ValueError: If there is nothing to choose from
        """
        if not options:
            raise ValueError("Cannot choose from an empty sequence")
        return options[int(self._rng.integers(0, len(options)))]
