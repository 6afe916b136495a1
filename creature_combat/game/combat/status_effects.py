"""
Status effect management.

Handles inflicting and clearing persistent conditions, the start-of-turn
checks that can cost a combatant its turn, the end-of-turn damage ticks and
stat stage changes. All status damage is routed through the
EffectApplicator so prevention (poison-heal) and defeat handling apply.
"""

import math
from typing import Optional, TYPE_CHECKING

from ...core.data import (
    DamageSource, StatName, StatusEffectId, WeatherKind, STAT_NAMES,
    STATUS_EFFECT_NAMES,
)
from ...core.events import StatChanged, StatusCleared, StatusInflicted

if TYPE_CHECKING:
    from ..battle_session import BattleSession
    from ..entities.combatant import Combatant


PARALYSIS_SKIP_CHANCE = 0.3
WAKE_CHANCE = 0.2
THAW_CHANCE = 0.1
FROZEN_MAX_TURNS = 3
CONFUSION_SELF_HIT_CHANCE = 1 / 3
CONFUSION_RECOVERY_CHANCE = 0.3
SNARED_DEFAULT_DURATION = 3

POISON_STATUSES = (StatusEffectId.POISONED, StatusEffectId.BADLY_POISONED)


class StatusEffectManager:
    """Applies, ticks and clears status effects for a battle session."""

    def __init__(self, session: "BattleSession"):
        self.session = session

    def _emit_log(self, message: str, category: str = "STATUS", level: str = "INFO") -> None:
        self.session.emit_log(message, category, level, source="StatusEffectManager")

    def _publish(self, event) -> None:
        self.session.event_manager.publish(event, source="StatusEffectManager")

    # ============== Immunities ==============

    def check_immunity(self, target: "Combatant", effect_id: StatusEffectId) -> Optional[str]:
        """Work out whether the target shrugs off a status.

        Returns:
            The reason the target is immune, or None if the status can land
        """
        if effect_id in (StatusEffectId.POISONED, StatusEffectId.BADLY_POISONED):
            if target.has_any_type("poison", "steel"):
                return "its type cannot be poisoned"
            if target.has_ability("immunity", "poison-heal", "pastel-veil"):
                return "its ability prevents poisoning"
        elif effect_id == StatusEffectId.BURNED:
            if target.has_type("fire"):
                return "fire types cannot be burned"
            if target.has_ability("water-veil", "water-bubble"):
                return "its ability prevents burns"
        elif effect_id == StatusEffectId.ASLEEP:
            if target.has_ability("insomnia", "vital-spirit"):
                return "its ability keeps it awake"
        elif effect_id == StatusEffectId.CONFUSED:
            if target.has_ability("own-tempo"):
                return "its ability prevents confusion"
        elif effect_id == StatusEffectId.FROZEN:
            if self.session.weather.kind == WeatherKind.SUN:
                return "nothing freezes in harsh sunlight"
            if target.has_ability("magma-armor"):
                return "its ability prevents freezing"
            if target.has_type("ice"):
                return "ice types cannot be frozen"
        elif effect_id == StatusEffectId.PARALYZED:
            if target.has_ability("limber"):
                return "its ability prevents paralysis"
            if target.has_type("electric"):
                return "electric types cannot be paralyzed"
        elif effect_id == StatusEffectId.SEEDED:
            if target.has_type("grass"):
                return "grass types cannot be seeded"
        return None

    # ============== Inflict / clear ==============

    def apply_status(
        self,
        target: "Combatant",
        effect_id: StatusEffectId,
        source: Optional["Combatant"] = None,
        duration: Optional[int] = None,
    ) -> bool:
        """Inflict a status effect if the target is not already affected or immune.

        Badly-poisoned may be reapplied; it also replaces ordinary poison,
        while ordinary poison does not land on a badly-poisoned target.

        Returns:
            True if the status was applied
        """
        if not target.is_alive:
            return False

        status = target.status
        if effect_id == StatusEffectId.POISONED and status.has(StatusEffectId.BADLY_POISONED):
            return False
        if status.has(effect_id) and effect_id != StatusEffectId.BADLY_POISONED:
            return False

        reason = self.check_immunity(target, effect_id)
        if reason is not None:
            self._emit_log(f"{target.name} is unaffected: {reason}.")
            return False

        if effect_id == StatusEffectId.BADLY_POISONED:
            status.remove(StatusEffectId.POISONED)
            existing = status.get(StatusEffectId.BADLY_POISONED)
            if existing is not None:
                existing.source = source
                self._emit_log(f"The poison in {target.name} festers.")
                return True

        if effect_id == StatusEffectId.SNARED and duration is None:
            duration = SNARED_DEFAULT_DURATION

        status.add(effect_id, source=source, duration=duration)
        self._emit_log(f"{target.name} is now {STATUS_EFFECT_NAMES[effect_id].lower()}!")
        self._publish(StatusInflicted(
            turn=self.session.turn,
            combatant=target,
            effect_id=effect_id,
            source=source,
        ))
        return True

    def remove_status(self, target: "Combatant", effect_id: StatusEffectId) -> bool:
        """Clear a status effect. Returns False if it was not active."""
        if not target.status.remove(effect_id):
            return False
        self._publish(StatusCleared(turn=self.session.turn, combatant=target, effect_id=effect_id))
        return True

    def clear_all(self, target: "Combatant") -> None:
        for effect_id in list(target.status.effects):
            self.remove_status(target, effect_id)
        target.status.skip_turn = False

    def wake_on_damage(self, target: "Combatant") -> bool:
        """Wake a sleeping combatant that just took direct damage."""
        if not target.has_status(StatusEffectId.ASLEEP):
            return False
        self.remove_status(target, StatusEffectId.ASLEEP)
        self._emit_log(f"{target.name} woke up from the hit!")
        return True

    # ============== Turn processing ==============

    def process_turn_start(self, combatant: "Combatant") -> bool:
        """Run the start-of-turn status checks.

        Returns:
            True if the combatant loses its turn
        """
        status = combatant.status
        status.skip_turn = False
        dice = self.session.dice

        if status.has(StatusEffectId.PARALYZED) and dice.chance(PARALYSIS_SKIP_CHANCE):
            self._emit_log(f"{combatant.name} is paralyzed and cannot move!")
            status.skip_turn = True

        if status.has(StatusEffectId.ASLEEP):
            self._emit_log(f"{combatant.name} is fast asleep.")
            status.skip_turn = True
            if dice.chance(WAKE_CHANCE):
                self.remove_status(combatant, StatusEffectId.ASLEEP)
                self._emit_log(f"{combatant.name} woke up!")
                status.skip_turn = False

        frozen = status.get(StatusEffectId.FROZEN)
        if frozen is not None:
            self._emit_log(f"{combatant.name} is frozen solid!")
            status.skip_turn = True
            frozen.turn_count += 1
            if dice.chance(THAW_CHANCE):
                self.remove_status(combatant, StatusEffectId.FROZEN)
                self._emit_log(f"{combatant.name} thawed out!")
                status.skip_turn = False
            elif frozen.turn_count >= FROZEN_MAX_TURNS:
                self.remove_status(combatant, StatusEffectId.FROZEN)
                self._emit_log(f"{combatant.name} thawed out after {FROZEN_MAX_TURNS} turns!")
                status.skip_turn = False

        if not status.skip_turn and status.has(StatusEffectId.CONFUSED):
            if dice.chance(CONFUSION_SELF_HIT_CHANCE):
                self.apply_confusion_damage(combatant)
                status.skip_turn = True

        return status.skip_turn

    def process_turn_end(self, combatant: "Combatant") -> int:
        """Tick end-of-turn status damage and expiries.

        Returns:
            Total damage taken from statuses this turn
        """
        total = 0
        hp_max = combatant.hp_max
        expired: list[StatusEffectId] = []

        for effect_id, effect in list(combatant.status.effects.items()):
            if not combatant.is_alive:
                break
            effect.turn_count += 1

            if effect_id == StatusEffectId.POISONED:
                total += self._status_damage(combatant, max(1, math.floor(hp_max / 16)), effect_id)
            elif effect_id == StatusEffectId.BADLY_POISONED:
                amount = max(1, math.floor(hp_max / 16 * effect.turn_count))
                total += self._status_damage(combatant, amount, effect_id)
            elif effect_id == StatusEffectId.BURNED:
                total += self._status_damage(combatant, max(1, math.ceil(hp_max / 8)), effect_id)
            elif effect_id == StatusEffectId.CURSED:
                event = self.session.effects.apply_damage(
                    combatant, max(1, math.floor(hp_max / 4)), DamageSource.CURSE,
                    source=effect.source, status_effect=effect_id,
                )
                total += event.final_amount
            elif effect_id == StatusEffectId.HELD:
                event = self.session.effects.apply_damage(
                    combatant, max(1, math.floor(hp_max / 16)), DamageSource.TRAP,
                    source=effect.source, status_effect=effect_id,
                )
                total += event.final_amount
            elif effect_id == StatusEffectId.SEEDED:
                total += self._leech_seed(combatant, effect.source)
            elif effect_id == StatusEffectId.SNARED:
                if effect.duration is not None and effect.turn_count >= effect.duration:
                    expired.append(effect_id)
                    self._emit_log(f"{combatant.name} broke free and can move again.")
            elif effect_id == StatusEffectId.CONFUSED:
                if self.session.dice.chance(CONFUSION_RECOVERY_CHANCE):
                    expired.append(effect_id)
                    self._emit_log(f"{combatant.name} snapped out of its confusion!")

        for effect_id in expired:
            self.remove_status(combatant, effect_id)
        return total

    def _status_damage(self, combatant: "Combatant", amount: int, effect_id: StatusEffectId) -> int:
        effect = combatant.status.get(effect_id)
        event = self.session.effects.apply_damage(
            combatant, amount, DamageSource.STATUS,
            source=effect.source if effect else None,
            status_effect=effect_id,
        )
        if event.prevented:
            return 0
        self._emit_log(
            f"{combatant.name} takes {event.final_amount} damage from being "
            f"{STATUS_EFFECT_NAMES[effect_id].lower()}."
        )
        return event.final_amount

    def _leech_seed(self, combatant: "Combatant", seeder: Optional["Combatant"]) -> int:
        amount = max(1, math.floor(combatant.hp_max / 16))
        event = self.session.effects.apply_damage(
            combatant, amount, DamageSource.LEECH_SEED,
            source=seeder, status_effect=StatusEffectId.SEEDED,
        )
        if event.prevented:
            return 0
        self._emit_log(f"{combatant.name}'s health is sapped by leech seed!")
        if seeder is not None and seeder.is_alive:
            self.session.effects.heal(seeder, event.final_amount, reason="leech seed")
        return event.final_amount

    def apply_confusion_damage(self, combatant: "Combatant") -> int:
        """The confused combatant hurts itself instead of acting."""
        amount = max(1, math.floor(combatant.hp_max / 8))
        event = self.session.effects.apply_damage(
            combatant, amount, DamageSource.CONFUSION, source=combatant,
        )
        self._emit_log(
            f"{combatant.name} is so confused it hurts itself for {event.final_amount} damage!"
        )
        return event.final_amount

    # ============== Stat stages ==============

    def apply_stat_change(
        self,
        target: "Combatant",
        stat: StatName,
        stages: int,
        source: Optional["Combatant"] = None,
    ) -> int:
        """Shift a stat stage with ability interactions.

        Contrary reverses the change. Clear-body and white-smoke block drops
        caused by another combatant.

        Returns:
            The stage change actually applied
        """
        if stages == 0 or not target.is_alive:
            return 0
        if target.has_ability("contrary"):
            stages = -stages
        caused_by_other = source is not None and source is not target
        if stages < 0 and caused_by_other and target.has_ability("clear-body", "white-smoke"):
            self._emit_log(f"{target.name}'s ability prevents its stats from being lowered!")
            return 0

        applied = target.change_stage(stat, stages)
        stat_name = STAT_NAMES[stat]
        if applied == 0:
            direction = "higher" if stages > 0 else "lower"
            self._emit_log(f"{target.name}'s {stat_name} won't go any {direction}!")
            return 0

        new_stage = target.stats.get_stage(stat)
        verb = "rose" if applied > 0 else "fell"
        self._emit_log(f"{target.name}'s {stat_name} {verb} by {abs(applied)} (stage {new_stage:+d})")
        self._publish(StatChanged(
            turn=self.session.turn,
            combatant=target,
            stat=stat,
            delta=applied,
            new_stage=new_stage,
        ))
        return applied

