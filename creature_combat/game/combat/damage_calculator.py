"""
Damage calculation.

Turns a hit into a number of damage dice and rolls them. The layers run in a
fixed order and each one is recorded on the result so a battle log can show
how the final figure came about:

1. Base power (power 0 short-circuits to a zero-damage result)
2. Opportunistic bonus dice against a wounded target
3. Attack/defense differential, floored at half the base
4. Ability multipliers (sand-force)
5. Type effectiveness, with the ace-trainer enhancement
6. Weather multiplier for the move type
7. Ability/weather boost (solar-power)
8. Critical hit
9. Variance roll: the damage value becomes a pool of d6 that is summed
"""

import math
from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from ...core.data import (
    AttackerStrategy, MoveCategory, StatusEffectId, TrainerClass, WeatherKind,
    effectiveness_description, get_type_effectiveness, round_half_up,
    stats_for_category,
)

if TYPE_CHECKING:
    from ..battle_session import BattleSession
    from ..entities.combatant import Combatant
    from ..entities.moves import Move


SAND_FORCE_MULTIPLIER = 1.3
SOLAR_POWER_MULTIPLIER = 1.5
CRITICAL_MULTIPLIER = 2

# Ace trainers squeeze more out of super effective matchups
ACE_TRAINER_EFFECTIVENESS = {2.0: 2.5, 4.0: 5.0}


def scale_damage(value: int, multiplier: float) -> int:
    """Multiply and round half-up, never rounding a positive value to 0."""
    scaled = value * multiplier
    if scaled <= 0:
        return 0
    return max(1, round_half_up(scaled))


@dataclass
class DamageResult:
    """Everything the damage pipeline worked out for one hit."""
    base_damage: int
    final_damage: int = 0
    pre_roll_damage: int = 0
    is_critical: bool = False
    effectiveness: float = 1.0
    effectiveness_tag: Optional[str] = None
    weather_tag: Optional[str] = None
    layers: list[tuple[str, int]] = field(default_factory=list)
    ability_modifiers: list[str] = field(default_factory=list)
    variance_rolls: tuple[int, ...] = ()

    @property
    def is_immune(self) -> bool:
        return self.effectiveness == 0


class DamageCalculator:
    """Layered damage pipeline bound to a battle session."""

    def __init__(self, session: "BattleSession"):
        self.session = session

    def _emit_log(self, message: str, category: str = "BATTLE", level: str = "INFO") -> None:
        self.session.emit_log(message, category, level, source="DamageCalculator")

    # ============== Critical hits ==============

    def crit_threshold(self, attacker: "Combatant", move: "Move") -> int:
        """Net successes needed for a critical hit with this move."""
        rules = self.session.rules
        identity = attacker.identity
        threshold = identity.crit_threshold
        if threshold is None:
            threshold = rules.default_crit_threshold
        if move.high_crit:
            threshold -= 1
        if identity.strategy == AttackerStrategy.PRECISION and move.range > 1:
            threshold -= 1
        return max(rules.min_crit_threshold, threshold)

    def is_critical(self, attacker: "Combatant", move: "Move", net_successes: int) -> bool:
        """Status moves and moves without power are never critical."""
        if move.is_status or move.power <= 0:
            return False
        return net_successes >= self.crit_threshold(attacker, move)

    # ============== Pipeline ==============

    def calculate(
        self,
        attacker: "Combatant",
        target: "Combatant",
        move: "Move",
        net_successes: int,
        roll_variance: bool = True,
    ) -> DamageResult:
        """Run the damage pipeline for one hit.

        Args:
            attacker: The attacking combatant
            target: The combatant taking the hit
            move: The move used
            net_successes: Attacker's final net successes (after any
                botched-dodge bonus) for the critical check
            roll_variance: Roll the damage pool; when False the final damage
                is the pre-roll value

        Returns:
            DamageResult with every intermediate layer recorded
        """
        base = move.power
        result = DamageResult(base_damage=base)
        if base <= 0:
            result.layers.append(("base", 0))
            return result

        damage = base
        result.layers.append(("base", damage))

        damage = self._opportunistic_bonus(attacker, target, damage, result)
        damage = self._stat_differential(attacker, target, move, damage, result)
        damage = self._ability_multiplier(attacker, move, damage, result)

        damage = self._type_effectiveness(attacker, target, move, damage, result)
        if result.effectiveness == 0:
            result.pre_roll_damage = 0
            return result

        damage = self._weather_multiplier(move, damage, result)
        damage = self._weather_ability_boost(attacker, damage, result)

        result.is_critical = self.is_critical(attacker, move, net_successes)
        if result.is_critical:
            damage = scale_damage(damage, CRITICAL_MULTIPLIER)
            result.layers.append(("critical", damage))

        result.pre_roll_damage = damage
        if roll_variance:
            roll = self.session.dice.roll_damage(damage)
            result.variance_rolls = roll.rolls
            result.final_damage = roll.total
        else:
            result.final_damage = damage

        self._emit_log(
            f"{move.name} rolls {damage} damage dice for {result.final_damage} damage",
            "DICE"
        )
        return result

    def _opportunistic_bonus(self, attacker, target, damage: int, result: DamageResult) -> int:
        if attacker.identity.strategy != AttackerStrategy.OPPORTUNISTIC:
            return damage
        if target.health.get_hp_percent() >= 0.5:
            return damage
        bonus = self.session.dice.roll_damage(self.session.rules.opportunistic_bonus_dice)
        damage += bonus.total
        result.layers.append(("opportunistic", damage))
        result.ability_modifiers.append(
            f"{attacker.name} goes for the wounded {target.name} (+{bonus.total})"
        )
        return damage

    def _stat_differential(self, attacker, target, move, damage: int, result: DamageResult) -> int:
        attack_stat, defense_stat = stats_for_category(move.category)
        attack_value = attacker.stat(attack_stat)
        if move.category == MoveCategory.PHYSICAL and attacker.has_status(StatusEffectId.BURNED):
            attack_value //= 2
        defense_value = target.stat(defense_stat)

        modifier = math.floor((attack_value - defense_value) / 5)
        damage = max(math.ceil(damage / 2), damage + modifier)
        result.layers.append(("stats", damage))
        return damage

    def _ability_multiplier(self, attacker, move, damage: int, result: DamageResult) -> int:
        if (attacker.has_ability("sand-force")
                and move.category == MoveCategory.PHYSICAL
                and self.session.weather.kind == WeatherKind.SANDSTORM):
            damage = scale_damage(damage, SAND_FORCE_MULTIPLIER)
            result.layers.append(("sand-force", damage))
            result.ability_modifiers.append(f"{attacker.name}'s Sand Force powers up the attack!")
        return damage

    def _type_effectiveness(self, attacker, target, move, damage: int, result: DamageResult) -> int:
        effectiveness = get_type_effectiveness(move.move_type, target.types)
        if attacker.identity.trainer_class == TrainerClass.ACE_TRAINER:
            enhanced = ACE_TRAINER_EFFECTIVENESS.get(effectiveness)
            if enhanced is not None:
                effectiveness = enhanced
                result.ability_modifiers.append(
                    f"{attacker.name}'s ace trainer sharpens the type advantage!"
                )

        result.effectiveness = effectiveness
        if effectiveness != 1:
            result.effectiveness_tag = effectiveness_description(effectiveness)

        if effectiveness == 0:
            result.layers.append(("type", 0))
            return 0
        damage = scale_damage(damage, effectiveness)
        result.layers.append(("type", damage))
        return damage

    def _weather_multiplier(self, move, damage: int, result: DamageResult) -> int:
        weather = self.session.weather
        multiplier = weather.damage_multiplier(move.move_type)
        if multiplier == 1:
            return damage
        damage = scale_damage(damage, multiplier)
        verb = "strengthens" if multiplier > 1 else "weakens"
        result.weather_tag = f"{weather.display_name} {verb} {move.move_type} moves"
        result.layers.append(("weather", damage))
        return damage

    def _weather_ability_boost(self, attacker, damage: int, result: DamageResult) -> int:
        if attacker.has_ability("solar-power") and self.session.weather.kind == WeatherKind.SUN:
            damage = scale_damage(damage, SOLAR_POWER_MULTIPLIER)
            result.layers.append(("solar-power", damage))
            result.ability_modifiers.append(f"{attacker.name}'s Solar Power boosts the attack!")
        return damage
