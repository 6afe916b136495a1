"""
Weather state machine.

One WeatherManager lives on each battle session. It tracks the current
weather and how many turns it has left, grants and revokes the sandstorm
defense bonus for rock types, answers the evasion and damage modifiers the
combat pipeline asks for, and applies the per-turn weather effects.
"""

import math
from typing import Optional, TYPE_CHECKING

from ...core.data import DamageSource, StatName, WeatherKind, WEATHER_NAMES
from ...core.events import WeatherChanged, WeatherEnded
from ..entities.components import MAX_STAGE

if TYPE_CHECKING:
    from ..battle_session import BattleSession
    from ..entities.combatant import Combatant


# Damage multipliers by weather and move type
WEATHER_TYPE_MULTIPLIERS: dict[WeatherKind, dict[str, float]] = {
    WeatherKind.SUN: {"fire": 1.5, "water": 0.5},
    WeatherKind.RAIN: {"water": 1.5, "fire": 0.5},
    WeatherKind.SNOW: {"ice": 1.5},
    WeatherKind.SANDSTORM: {"rock": 1.5},
}

# Ability that raises the evasion threshold, and the weather it works in
EVASION_ABILITIES: dict[str, tuple[WeatherKind, ...]] = {
    "sand-veil": (WeatherKind.SANDSTORM,),
    "snow-cloak": (WeatherKind.HAIL, WeatherKind.SNOW),
}
WEATHER_EVASION_THRESHOLD = 3
DEFAULT_EVASION_THRESHOLD = 1

SANDSTORM_BONUS_STATS = (StatName.DEFENSE, StatName.SPECIAL_DEFENSE)

SANDSTORM_IMMUNE_TYPES = ("rock", "steel", "ground")
SANDSTORM_IMMUNE_ABILITIES = ("sand-veil", "sand-force", "sand-rush", "overcoat", "magic-guard")
HAIL_IMMUNE_TYPES = ("ice", "water")
HAIL_IMMUNE_ABILITIES = ("snow-cloak", "overcoat", "magic-guard")

WEATHER_DAMAGE_FRACTION = 0.1
SUN_ABILITY_DAMAGE_FRACTION = 0.125
RAIN_DISH_HEAL_FRACTION = 0.1
DROUGHT_HEAL_FRACTION = 0.125
ICE_BODY_HEAL_FRACTION = 0.1


class WeatherManager:
    """Battle-scoped weather state and its effects."""

    def __init__(self, session: "BattleSession"):
        self.session = session
        self.kind = WeatherKind.NONE
        self.remaining_turns = 0
        # combatant id -> stats that actually received the sandstorm bonus
        self._sandstorm_bonuses: dict[str, list[StatName]] = {}
        self.sand_attack_count = 0

    def _emit_log(self, message: str, category: str = "WEATHER", level: str = "INFO") -> None:
        self.session.emit_log(message, category, level, source="WeatherManager")

    @property
    def display_name(self) -> str:
        return WEATHER_NAMES[self.kind]

    @property
    def is_active(self) -> bool:
        return self.kind != WeatherKind.NONE

    # ============== State machine ==============

    def set_weather(self, kind: Optional[WeatherKind], duration: int = 0) -> None:
        """Change the weather.

        ``None``, ``WeatherKind.NONE`` or a non-positive duration clears it.
        Leaving a sandstorm takes back exactly the stages it granted;
        entering one grants them.
        """
        if kind in (None, WeatherKind.NONE) or duration <= 0:
            kind, duration = WeatherKind.NONE, 0

        previous = self.kind
        if previous == WeatherKind.SANDSTORM and kind != WeatherKind.SANDSTORM:
            self._revoke_sandstorm_bonuses()

        self.kind = kind
        self.remaining_turns = duration

        if kind == WeatherKind.SANDSTORM and previous != WeatherKind.SANDSTORM:
            for combatant in self.session.living_combatants():
                self._grant_sandstorm_bonus(combatant)

        if kind != WeatherKind.NONE:
            self._emit_log(f"The weather changes to {self.display_name} for {duration} turns.")
        self.session.event_manager.publish(
            WeatherChanged(turn=self.session.turn, previous=previous, current=kind, duration=duration),
            source="WeatherManager",
        )

    def tick(self) -> bool:
        """Count down one turn of weather.

        Returns:
            True if the weather ended on this tick
        """
        if not self.is_active:
            return False
        self.remaining_turns -= 1
        if self.remaining_turns > 0:
            return False

        previous = self.kind
        self._emit_log(f"The {self.display_name.lower()} subsides.")
        self.set_weather(None, 0)
        self.session.event_manager.publish(
            WeatherEnded(turn=self.session.turn, previous=previous),
            source="WeatherManager",
        )
        return True

    def reset(self) -> None:
        """Clear weather and all battle-scoped bookkeeping."""
        if self.is_active:
            self.set_weather(None, 0)
        self._sandstorm_bonuses.clear()
        self.sand_attack_count = 0

    # ============== Modifiers ==============

    def evasion_threshold(self, target: "Combatant") -> int:
        """Net successes an attack needs to hit the target in this weather."""
        for ability, kinds in EVASION_ABILITIES.items():
            if self.kind in kinds and target.has_ability(ability):
                return WEATHER_EVASION_THRESHOLD
        return DEFAULT_EVASION_THRESHOLD

    def damage_multiplier(self, move_type: Optional[str]) -> float:
        if not move_type:
            return 1.0
        return WEATHER_TYPE_MULTIPLIERS.get(self.kind, {}).get(move_type.lower(), 1.0)

    # ============== Sandstorm bonus ==============

    def _grant_sandstorm_bonus(self, combatant: "Combatant") -> None:
        if not combatant.has_type("rock") or combatant.combatant_id in self._sandstorm_bonuses:
            return
        granted = []
        for stat in SANDSTORM_BONUS_STATS:
            if combatant.stats.get_stage(stat) < MAX_STAGE and combatant.change_stage(stat, 1) == 1:
                granted.append(stat)
        self._sandstorm_bonuses[combatant.combatant_id] = granted
        if granted:
            self._emit_log(f"The sandstorm hardens {combatant.name}'s rocky body!")

    def _revoke_sandstorm_bonuses(self) -> None:
        for combatant_id, granted in self._sandstorm_bonuses.items():
            combatant = self.session.get_combatant(combatant_id)
            if combatant is None:
                continue
            for stat in granted:
                combatant.change_stage(stat, -1)
        self._sandstorm_bonuses.clear()

    def sandstorm_bonus_for(self, combatant: "Combatant") -> list[StatName]:
        return list(self._sandstorm_bonuses.get(combatant.combatant_id, []))

    def on_combatant_entered(self, combatant: "Combatant") -> None:
        """Give a rock type joining mid-sandstorm the same bonus as everyone else."""
        if self.kind == WeatherKind.SANDSTORM and combatant.is_alive:
            self._grant_sandstorm_bonus(combatant)

    def forget(self, combatant: "Combatant") -> None:
        """Drop bookkeeping for a combatant that left the battle."""
        self._sandstorm_bonuses.pop(combatant.combatant_id, None)

    def register_sand_attack(self, attacker: "Combatant") -> bool:
        """Count a sand move by a sand-force user; enough of them summon a sandstorm.

        Returns:
            True if this use summoned a sandstorm
        """
        if not attacker.has_ability("sand-force"):
            return False
        rules = self.session.rules
        self.sand_attack_count += 1
        self._emit_log(
            f"{attacker.name} kicks up sand! ({self.sand_attack_count}/{rules.sandstorm_summon_count})"
        )
        if self.sand_attack_count < rules.sandstorm_summon_count:
            return False
        self.sand_attack_count = 0
        self._emit_log(f"{attacker.name}'s repeated sand attacks whip up a sandstorm!")
        self.set_weather(WeatherKind.SANDSTORM, rules.sandstorm_summon_duration)
        return True

    # ============== Periodic effects ==============

    def apply_periodic_effects(self) -> None:
        """Apply this turn's weather damage and healing, in turn order."""
        if not self.is_active:
            return
        for combatant in list(self.session.living_combatants()):
            if not combatant.is_alive:
                continue
            if self.kind == WeatherKind.SUN:
                self._apply_sun(combatant)
            elif self.kind == WeatherKind.RAIN:
                self._apply_rain(combatant)
            elif self.kind in (WeatherKind.HAIL, WeatherKind.SNOW):
                self._apply_cold(combatant)
            elif self.kind == WeatherKind.SANDSTORM:
                self._apply_sandstorm(combatant)

    def _weather_damage(self, combatant: "Combatant", fraction: float, reason: str) -> None:
        amount = math.ceil(combatant.hp_max * fraction)
        event = self.session.effects.apply_damage(combatant, amount, DamageSource.WEATHER)
        if event.final_amount > 0:
            self._emit_log(f"{combatant.name} {reason} ({event.final_amount} damage).")

    def _weather_heal(self, combatant: "Combatant", fraction: float, reason: str) -> None:
        self.session.effects.heal(combatant, math.ceil(combatant.hp_max * fraction), reason=reason)

    def _apply_sun(self, combatant: "Combatant") -> None:
        if combatant.has_ability("drought"):
            self._weather_damage(combatant, SUN_ABILITY_DAMAGE_FRACTION, "is scorched by the sun")
        elif combatant.has_ability("solar-power"):
            self._weather_damage(combatant, SUN_ABILITY_DAMAGE_FRACTION, "burns with solar power")

    def _apply_rain(self, combatant: "Combatant") -> None:
        if combatant.has_ability("rain-dish"):
            self._weather_heal(combatant, RAIN_DISH_HEAL_FRACTION, "rain dish")
        elif combatant.has_ability("drought"):
            self._weather_heal(combatant, DROUGHT_HEAL_FRACTION, "drought")

    def _apply_cold(self, combatant: "Combatant") -> None:
        if combatant.has_ability("ice-body"):
            self._weather_heal(combatant, ICE_BODY_HEAL_FRACTION, "ice body")
            return
        if self.kind != WeatherKind.HAIL:
            return
        if combatant.has_any_type(*HAIL_IMMUNE_TYPES) or combatant.has_ability(*HAIL_IMMUNE_ABILITIES):
            return
        self._weather_damage(combatant, WEATHER_DAMAGE_FRACTION, "is pelted by hail")

    def _apply_sandstorm(self, combatant: "Combatant") -> None:
        if combatant.has_any_type(*SANDSTORM_IMMUNE_TYPES):
            return
        if combatant.has_ability(*SANDSTORM_IMMUNE_ABILITIES):
            return
        self._weather_damage(combatant, WEATHER_DAMAGE_FRACTION, "is buffeted by the sandstorm")
