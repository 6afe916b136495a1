"""Combatant components.

A combatant entity is built from seven components: Identity, Health, Stats,
Status, Luck, Moveset and Position. Each owns one slice of state and the
operations that keep that slice consistent.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from ...core.entities import Component
from ...core.data import (
    AttackerStrategy, ComponentType, ForcingPolicy, StatName, StatusEffectId,
    Team, TrainerClass, Vector2, round_half_up,
)

if TYPE_CHECKING:
    from ...core.entities.components import Entity
    from .combatant import Combatant
    from .moves import MoveSlot


MIN_STAGE = -6
MAX_STAGE = 6

STAGE_MULTIPLIERS: dict[int, float] = {
    -6: 0.25, -5: 0.28, -4: 0.33, -3: 0.4, -2: 0.5, -1: 0.67,
    0: 1.0,
    1: 1.5, 2: 2.0, 3: 2.5, 4: 3.0, 5: 3.5, 6: 4.0,
}

# Stats read through the stage multiplier table. The remaining stats are
# dice pools and take their stage as a flat modifier.
STAGE_BASED_STATS = frozenset({
    StatName.ATTACK, StatName.DEFENSE, StatName.SPECIAL_ATTACK,
    StatName.SPECIAL_DEFENSE, StatName.INITIATIVE,
})

# Dice pool stats a combatant gets when its data leaves them out
DEFAULT_POOL_STATS = {
    StatName.EVASION: 1,
}


def max_luck_tokens(base_stat_total: int) -> int:
    """Luck token cap for a given base stat total. Weaker creatures get more."""
    return max(1, (600 - base_stat_total) // 80 + 1)


class IdentityComponent(Component):
    """Who the combatant is: name, team, types, ability and combat habits."""

    def __init__(
        self,
        entity: "Entity",
        name: str,
        team: Team,
        types: tuple[str, ...] = (),
        ability: Optional[str] = None,
        trainer_class: Optional[TrainerClass] = None,
        strategy: AttackerStrategy = AttackerStrategy.STANDARD,
        forcing_policy: ForcingPolicy = ForcingPolicy.ALWAYS,
        base_stat_total: int = 500,
        crit_threshold: Optional[int] = None,
    ):
        super().__init__(entity)
        if len(types) > 2:
            raise ValueError(f"A combatant has at most two types, got {types}")
        self.name = name
        self.team = team
        self.types = tuple(t.lower() for t in types)
        self.ability = ability.lower() if ability else None
        self.trainer_class = trainer_class
        self.strategy = strategy
        self.forcing_policy = forcing_policy
        self.base_stat_total = base_stat_total
        self.crit_threshold = crit_threshold
        # Attacks still fully absorbed, granted by a brawler trainer
        self.protection_charges = 0

    def get_component_type(self) -> ComponentType:
        return ComponentType.IDENTITY

    def has_type(self, type_name: str) -> bool:
        return type_name.lower() in self.types

    def has_ability(self, *abilities: str) -> bool:
        return self.ability is not None and self.ability in {a.lower() for a in abilities}

    def is_ally_of(self, other: "IdentityComponent") -> bool:
        return self.team == other.team


class HealthComponent(Component):
    """Component for life and defeat management."""

    def __init__(self, entity: "Entity", hp_max: int):
        super().__init__(entity)
        if hp_max <= 0:
            raise ValueError("Maximum HP must be positive")
        self.hp_max = hp_max
        self.hp_current = hp_max
        self.defeated = False

    def get_component_type(self) -> ComponentType:
        return ComponentType.HEALTH

    def is_alive(self) -> bool:
        return self.hp_current > 0 and not self.defeated

    def get_hp_percent(self) -> float:
        """Get current health as a fraction of maximum (0.0 to 1.0)."""
        return self.hp_current / self.hp_max

    def take_damage(self, amount: int) -> int:
        """Apply damage to this combatant.

        Args:
            amount: Amount of damage to apply

        Returns:
            Actual damage dealt (may be less due to overkill prevention)
        """
        if amount < 0:
            raise ValueError("Damage amount cannot be negative")
        old_hp = self.hp_current
        self.hp_current = max(0, self.hp_current - amount)
        return old_hp - self.hp_current

    def heal(self, amount: int) -> int:
        """Apply healing to this combatant.

        Returns:
            Actual healing done (may be less due to max hp cap)
        """
        if amount < 0:
            raise ValueError("Heal amount cannot be negative")
        old_hp = self.hp_current
        self.hp_current = min(self.hp_max, self.hp_current + amount)
        return self.hp_current - old_hp


class StatsComponent(Component):
    """Base stats plus stage modifiers clamped to [-6, +6]."""

    def __init__(self, entity: "Entity", base_stats: dict[StatName, int]):
        super().__init__(entity)
        self.base_stats: dict[StatName, int] = {stat: DEFAULT_POOL_STATS.get(stat, 0) for stat in StatName}
        self.base_stats.update(base_stats)
        self.stages: dict[StatName, int] = {stat: 0 for stat in StatName}

    def get_component_type(self) -> ComponentType:
        return ComponentType.STATS

    def get_stage(self, stat: StatName) -> int:
        return self.stages[stat]

    def get_value(self, stat: StatName) -> int:
        """Current value of a stat with its stage applied."""
        base = self.base_stats[stat]
        stage = self.stages[stat]
        if stat in STAGE_BASED_STATS:
            return round_half_up(base * STAGE_MULTIPLIERS[stage])
        return max(0, base + stage)

    def change_stage(self, stat: StatName, delta: int) -> int:
        """Move a stat's stage, clamped to the allowed range.

        Returns:
            The stage change actually applied (0 when already at the cap)
        """
        current = self.stages[stat]
        new_stage = max(MIN_STAGE, min(MAX_STAGE, current + delta))
        self.stages[stat] = new_stage
        return new_stage - current

    def reset_stages(self) -> None:
        for stat in self.stages:
            self.stages[stat] = 0


@dataclass
class StatusEffectInstance:
    """An active status effect on a combatant."""
    effect_id: StatusEffectId
    source: Optional["Combatant"] = None
    turn_count: int = 0
    duration: Optional[int] = None


class StatusComponent(Component):
    """Active status effects and the turn-skip flag they produce."""

    def __init__(self, entity: "Entity"):
        super().__init__(entity)
        self.effects: dict[StatusEffectId, StatusEffectInstance] = {}
        self.skip_turn = False

    def get_component_type(self) -> ComponentType:
        return ComponentType.STATUS

    def has(self, effect_id: StatusEffectId) -> bool:
        return effect_id in self.effects

    def add(self, effect_id: StatusEffectId, source: Optional["Combatant"] = None,
            duration: Optional[int] = None) -> StatusEffectInstance:
        instance = StatusEffectInstance(effect_id=effect_id, source=source, duration=duration)
        self.effects[effect_id] = instance
        return instance

    def get(self, effect_id: StatusEffectId) -> Optional[StatusEffectInstance]:
        return self.effects.get(effect_id)

    def remove(self, effect_id: StatusEffectId) -> bool:
        return self.effects.pop(effect_id, None) is not None

    def clear(self) -> None:
        self.effects.clear()
        self.skip_turn = False


class LuckComponent(Component):
    """Battle-scoped luck token pool."""

    def __init__(self, entity: "Entity", max_tokens: int):
        super().__init__(entity)
        self.max_tokens = max_tokens
        self.tokens = max_tokens

    def get_component_type(self) -> ComponentType:
        return ComponentType.LUCK

    def spend(self) -> bool:
        """Spend one token. Returns False when none are left."""
        if self.tokens <= 0:
            return False
        self.tokens -= 1
        return True

    def refill(self) -> int:
        """Restore the pool to its maximum. Returns the new token count."""
        self.tokens = self.max_tokens
        return self.tokens


class MovesetComponent(Component):
    """The combatant's move list with per-battle use counters."""

    def __init__(self, entity: "Entity", slots: list["MoveSlot"]):
        super().__init__(entity)
        self.slots = slots

    def get_component_type(self) -> ComponentType:
        return ComponentType.MOVESET

    def find(self, move_name: str) -> Optional["MoveSlot"]:
        for slot in self.slots:
            if slot.move.name == move_name:
                return slot
        return None


class PositionComponent(Component):
    """Grid position of the combatant."""

    def __init__(self, entity: "Entity", position: Vector2):
        super().__init__(entity)
        self.position = position

    def get_component_type(self) -> ComponentType:
        return ComponentType.POSITION
