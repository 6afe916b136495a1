"""Centralized defeat handling.

Every path that can drop a combatant to 0 HP ends up here. The resolver is
idempotent: once a combatant is marked defeated, further calls do nothing,
so no reward is paid twice and nothing is removed from the turn order twice.
"""

import math
from typing import Optional, TYPE_CHECKING

from ...core.data import DamageSource, TrainerClass
from ...core.events import CombatantDefeated, CombatantStolen, LuckTokensRefilled

if TYPE_CHECKING:
    from ..battle_session import BattleSession
    from ..entities.combatant import Combatant


class DefeatResolver:
    """Marks combatants defeated and pays out the finishing-blow reward."""

    def __init__(self, session: "BattleSession"):
        self.session = session

    def _emit_log(self, message: str, category: str = "DEFEAT", level: str = "INFO") -> None:
        self.session.emit_log(message, category, level, source="DefeatResolver")

    def check_and_handle_defeat(
        self,
        target: "Combatant",
        attacker: Optional["Combatant"] = None,
        source_type: DamageSource = DamageSource.ATTACK,
    ) -> bool:
        """Handle the defeat of a combatant at 0 HP.

        Args:
            target: Combatant to check
            attacker: Combatant that dealt the finishing blow, if any
            source_type: Kind of damage that caused the defeat

        Returns:
            True if the combatant was defeated by this call. A combatant
            stolen by a thief's finishing blow is not defeated.
        """
        health = target.health
        if health.hp_current > 0 or health.defeated:
            return False

        if self._can_steal(target, attacker, source_type):
            self._steal(target, attacker)
            return False

        health.hp_current = 0
        health.defeated = True
        self.session.status_effects.clear_all(target)
        self.session.remove_from_turn_order(target)
        self.session.weather.forget(target)

        if attacker is not None and attacker is not target:
            self._emit_log(f"{target.name} is defeated and leaves the battle!")
        else:
            self._emit_log(f"{target.name} was defeated!")

        self.session.event_manager.publish(
            CombatantDefeated(
                turn=self.session.turn,
                combatant=target,
                defeated_by=attacker,
                source_type=source_type,
            ),
            source="DefeatResolver",
        )

        if (source_type == DamageSource.ATTACK
                and attacker is not None
                and attacker is not target
                and attacker.is_alive):
            self._reward(attacker)
        return True

    def _reward(self, attacker: "Combatant") -> None:
        tokens = attacker.luck.refill()
        self._emit_log(
            f"{attacker.name} defeated an opponent and regains all luck tokens! ({tokens})"
        )
        self.session.event_manager.publish(
            LuckTokensRefilled(turn=self.session.turn, combatant=attacker, tokens=tokens),
            source="DefeatResolver",
        )

    # ============== Thief trainers ==============

    def _can_steal(
        self,
        target: "Combatant",
        attacker: Optional["Combatant"],
        source_type: DamageSource,
    ) -> bool:
        if (source_type != DamageSource.ATTACK
                or attacker is None
                or not attacker.is_alive
                or not attacker.is_enemy_of(target)
                or attacker.identity.trainer_class != TrainerClass.THIEF):
            return False
        return self.session.dice.chance(self.session.rules.thief_steal_chance)

    def _steal(self, target: "Combatant", attacker: "Combatant") -> None:
        """Bring the target back on the attacker's side instead of defeating it."""
        rules = self.session.rules
        health = target.health
        health.hp_current = max(1, math.floor(health.hp_max * rules.thief_steal_hp_fraction))
        self.session.status_effects.clear_all(target)
        previous_team = target.identity.team
        target.identity.team = attacker.team

        self._emit_log(f"{attacker.name}'s thief trainer steals {target.name} from the other team!")
        self.session.event_manager.publish(
            CombatantStolen(
                turn=self.session.turn,
                combatant=target,
                stolen_by=attacker,
                previous_team=previous_team,
            ),
            source="DefeatResolver",
        )
