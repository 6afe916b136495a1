"""
Effect application.

Every change to a combatant's health passes through the EffectApplicator.
Damage is applied in a fixed order: HP loss, wake-up, immediate
``DamageApplied`` delivery to listeners, then the defeat check. Listeners
are plain EventManager subscribers, so abilities and other systems can react
to damage without the pipeline knowing about them.

The applicator also hosts the move effect dispatcher, which interprets a
move's behavior tag after it has been resolved.
"""

import math
from typing import Callable, Optional, TYPE_CHECKING

from ...core.data import DamageSource, MoveBehavior, StatChangeTarget, StatusEffectId
from ...core.events import DamageApplied, EventType, GameEvent
from .status_effects import POISON_STATUSES

if TYPE_CHECKING:
    from ..battle_session import BattleSession
    from ..entities.combatant import Combatant
    from ..entities.moves import Move


DamageListener = Callable[[GameEvent], None]


class EffectApplicator:
    """Applies damage, healing and move side effects for a battle session."""

    def __init__(self, session: "BattleSession"):
        self.session = session

    def _emit_log(self, message: str, category: str = "BATTLE", level: str = "INFO") -> None:
        self.session.emit_log(message, category, level, source="EffectApplicator")

    # ============== Damage listeners ==============

    def add_damage_listener(self, listener: DamageListener, name: Optional[str] = None) -> None:
        """Register a callback receiving every DamageApplied event."""
        self.session.event_manager.subscribe(EventType.DAMAGE_APPLIED, listener, subscriber_name=name)

    def remove_damage_listener(self, listener: DamageListener) -> bool:
        return self.session.event_manager.unsubscribe(EventType.DAMAGE_APPLIED, listener)

    # ============== Damage ==============

    def apply_damage(
        self,
        target: "Combatant",
        amount: float,
        source_type: DamageSource,
        source: Optional["Combatant"] = None,
        move: Optional["Move"] = None,
        is_critical: bool = False,
        effectiveness: float = 1.0,
        status_effect: Optional[StatusEffectId] = None,
    ) -> DamageApplied:
        """Apply damage to a combatant.

        Args:
            target: The combatant taking damage
            amount: Raw damage; fractions are floored but positive damage is at least 1
            source_type: Where the damage comes from
            source: The combatant responsible, if any
            move: The move that dealt the damage, if any
            is_critical: Whether the hit was critical
            effectiveness: Type effectiveness of the hit
            status_effect: The status producing status damage, if any

        Returns:
            The DamageApplied event. For a target that is already down or a
            zero amount, an unpublished event with ``final_amount`` 0.

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError("Damage amount cannot be negative")

        if target.hp_current <= 0 or target.is_defeated:
            return self._noop_event(target, source_type, source, move, "target already defeated")

        final = math.floor(amount)
        if amount > 0:
            final = max(1, final)
        if final == 0:
            return self._noop_event(target, source_type, source, move, "no damage to apply")

        reason = self._prevention_reason(target, source_type, move, effectiveness)
        if reason is None:
            reason = self._absorb(target, final, source_type, source, status_effect)
        if reason is not None:
            self._emit_log(reason)
            event = DamageApplied(
                turn=self.session.turn,
                target=target,
                amount=final,
                final_amount=0,
                source_type=source_type,
                source=source,
                move=move,
                is_critical=is_critical,
                effectiveness=effectiveness,
                prevented=True,
                reduced_by=final,
                prevention_reason=reason,
                remaining_hp=target.hp_current,
            )
            self.session.event_manager.publish_immediate(event, source="EffectApplicator")
            return event

        dealt = target.health.take_damage(final)
        if source_type != DamageSource.STATUS:
            self.session.status_effects.wake_on_damage(target)

        event = DamageApplied(
            turn=self.session.turn,
            target=target,
            amount=final,
            final_amount=dealt,
            source_type=source_type,
            source=source,
            move=move,
            is_critical=is_critical,
            effectiveness=effectiveness,
            reduced_by=final - dealt,
            remaining_hp=target.hp_current,
        )
        self.session.event_manager.publish_immediate(event, source="EffectApplicator")

        attacker = source if source_type == DamageSource.ATTACK else None
        self.session.defeat_resolver.check_and_handle_defeat(target, attacker, source_type)
        return event

    def _prevention_reason(
        self,
        target: "Combatant",
        source_type: DamageSource,
        move: Optional["Move"],
        effectiveness: float,
    ) -> Optional[str]:
        """Why an attack cannot hurt the target at all, if it cannot."""
        if source_type == DamageSource.ATTACK and move is not None:
            if move.move_type == "fire" and target.has_ability("flash-fire"):
                return f"{target.name}'s Flash Fire absorbs the fire attack!"
            if effectiveness == 0:
                return f"{move.name} has no effect on {target.name}!"
        return None

    def _absorb(
        self,
        target: "Combatant",
        amount: int,
        source_type: DamageSource,
        source: Optional["Combatant"],
        status_effect: Optional[StatusEffectId],
    ) -> Optional[str]:
        """Let an effect take the damage in the target's place.

        Poison Heal turns poison damage into healing. A brawler's protection
        charge is spent to shrug off one direct attack from someone else.

        Returns:
            The narration for the absorbed damage, or None if nothing absorbed it
        """
        if (source_type == DamageSource.STATUS
                and status_effect in POISON_STATUSES
                and target.has_ability("poison-heal")):
            healed = target.health.heal(amount)
            if healed > 0:
                return f"{target.name} is healed by {healed} HP from poison (Poison Heal)!"
            return f"{target.name} is at full HP and cannot be healed further by Poison Heal."

        identity = target.identity
        if (source_type == DamageSource.ATTACK
                and source is not None
                and source is not target
                and identity.protection_charges > 0):
            identity.protection_charges -= 1
            return (f"{target.name} knows how to brawl and avoids all damage! "
                    f"({identity.protection_charges} left)")
        return None

    def _noop_event(self, target, source_type, source, move, reason: str) -> DamageApplied:
        return DamageApplied(
            turn=self.session.turn,
            target=target,
            amount=0,
            final_amount=0,
            source_type=source_type,
            source=source,
            move=move,
            prevented=True,
            prevention_reason=reason,
            remaining_hp=target.hp_current,
        )

    # ============== Healing ==============

    def heal(self, target: "Combatant", amount: int, reason: Optional[str] = None) -> int:
        """Restore HP to a living combatant. Returns the HP actually restored."""
        if not target.is_alive or amount <= 0:
            return 0
        healed = target.health.heal(amount)
        if healed > 0:
            suffix = f" ({reason})" if reason else ""
            self._emit_log(f"{target.name} restores {healed} HP{suffix}.")
        return healed

    # ============== Recoil and drain ==============

    def apply_recoil(self, attacker: "Combatant", damage_dealt: int, move: "Move") -> int:
        """Hurt the attacker by a fraction of the damage it dealt."""
        if damage_dealt <= 0 or move.recoil_fraction <= 0:
            return 0
        recoil = math.ceil(damage_dealt * move.recoil_fraction)
        event = self.apply_damage(attacker, recoil, DamageSource.RECOIL, source=attacker, move=move)
        if event.final_amount > 0:
            self._emit_log(f"{attacker.name} is hurt by recoil for {event.final_amount} damage!")
        return event.final_amount

    def apply_drain(self, attacker: "Combatant", damage_dealt: int, move: "Move") -> int:
        """Heal the attacker by a fraction of the damage it dealt."""
        if damage_dealt <= 0 or move.drain_fraction <= 0:
            return 0
        return self.heal(attacker, math.ceil(damage_dealt * move.drain_fraction), reason=move.name)

    # ============== Move effect dispatcher ==============

    def apply_move_effects(
        self,
        attacker: "Combatant",
        target: Optional["Combatant"],
        move: "Move",
        hit: bool,
        net_successes: int,
        damage_dealt: int = 0,
        effectiveness: float = 1.0,
    ) -> list[str]:
        """Interpret the move's behavior tag after it resolved.

        On-hit effects (status infliction, stat changes on the target) only
        happen when the attack hit with a non-negative final net. Recoil and
        drain depend only on the damage dealt.

        Returns:
            Names of the effects that took place
        """
        applied: list[str] = []
        on_hit = hit and net_successes >= 0 and target is not None

        if move.behavior == MoveBehavior.WEATHER and move.weather is not None:
            self.session.weather.set_weather(move.weather, move.weather_duration)
            applied.append("weather")

        if move.behavior == MoveBehavior.STAT_CHANGE and move.stat_change is not None:
            change = move.stat_change
            if change.target == StatChangeTarget.SELF:
                if self.session.status_effects.apply_stat_change(
                        attacker, change.stat, change.stages, source=attacker):
                    applied.append("stat-change")
            elif on_hit and target.is_alive:
                if self.session.status_effects.apply_stat_change(
                        target, change.stat, change.stages, source=attacker):
                    applied.append("stat-change")

        if move.inflicts is not None and on_hit and effectiveness != 0:
            if self.session.status_effects.apply_status(target, move.inflicts, source=attacker):
                applied.append("status")

        if move.recoil_fraction > 0 and damage_dealt > 0:
            if self.apply_recoil(attacker, damage_dealt, move):
                applied.append("recoil")

        if move.drain_fraction > 0 and damage_dealt > 0:
            if self.apply_drain(attacker, damage_dealt, move):
                applied.append("drain")

        return applied
