"""
Attack orchestration.

The AttackOrchestrator drives one attack from move selection to completion:

    SELECTING -> ROLLING_HIT -> MISSED
                             -> DODGING -> DODGED
                                        -> HITTING -> RESOLVED
    ... -> COMPLETED

Each attack runs inside an AttackSession that owns a one-shot future, so an
outcome can be delivered exactly once however many code paths try to finish
the attack. Attacks by the same attacker are serialized with a per-attacker
asyncio.Lock, and every running session is registered with the battle
session so the turn loop can wait for quiescence.

Expected failures (bad target, no usable move, blocked line of sight,
presentation errors) are turned into well-formed outcomes here and never
escape ``perform_attack``.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Optional, Union, TYPE_CHECKING

from ...core.data import (
    AttackPhase, AttackStatus, DamageSource, get_type_effectiveness,
)
from ...core.errors import (
    InvalidTargetError, LineOfSightBlockedError, NoValidMoveError, PresentationError,
)
from ...core.events import (
    AttackDodged, AttackMissed, AttackResolved, AttackRolled, AttackStarted,
)
from ..entities.moves import Move, MoveSlot, STRUGGLE
from .damage_calculator import DamageResult
from .dice import AttackRoll
from .dodge_resolution import DodgeResult
from .hit_resolution import HitResult
from .targeting import find_cone_targets

if TYPE_CHECKING:
    from ..battle_session import BattleSession
    from ..entities.combatant import Combatant


@dataclass
class TargetResult:
    """How the attack played out against one target."""
    target: "Combatant"
    hit: bool
    net_successes: int = 0
    dodge: Optional[DodgeResult] = None
    damage: list[DamageResult] = field(default_factory=list)
    damage_dealt: int = 0
    effects: list[str] = field(default_factory=list)
    defeated: bool = False

    @property
    def dodged(self) -> bool:
        return self.dodge is not None and self.dodge.success

    @property
    def is_critical(self) -> bool:
        return any(result.is_critical for result in self.damage)


@dataclass
class AttackOutcome:
    """Final, well-formed result of an attack request."""
    attack_id: str
    attacker: "Combatant"
    target: Optional["Combatant"] = None
    move: Optional[Move] = None
    status: AttackStatus = AttackStatus.COMPLETED
    phase: AttackPhase = AttackPhase.SELECTING
    hit_result: Optional[HitResult] = None
    results: list[TargetResult] = field(default_factory=list)
    effects: list[str] = field(default_factory=list)
    reason: Optional[str] = None
    presentation_errors: list[str] = field(default_factory=list)

    @property
    def hit(self) -> bool:
        return any(result.hit and not result.dodged for result in self.results)

    @property
    def total_damage(self) -> int:
        return sum(result.damage_dealt for result in self.results)

    @property
    def primary(self) -> Optional[TargetResult]:
        return self.results[0] if self.results else None

    @property
    def defeated(self) -> list["Combatant"]:
        return [result.target for result in self.results if result.defeated]


class AttackSession:
    """One attacker + target + move invocation with a one-shot result."""

    def __init__(
        self,
        attacker: "Combatant",
        target: Union["Combatant", str, None],
        move: Optional[Move] = None,
    ):
        self.attack_id = str(uuid.uuid4())
        self.attacker = attacker
        self.requested_target = target
        self.requested_move = move
        self.phase = AttackPhase.SELECTING
        self.future: asyncio.Future = asyncio.get_running_loop().create_future()
        # Task running the resolution pipeline, set once the attack starts
        self.task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self.future.done()

    def advance(self, phase: AttackPhase) -> None:
        self.phase = phase

    def complete(self, outcome: AttackOutcome) -> bool:
        """Deliver the outcome. Later calls are ignored and return False."""
        if self.future.done():
            return False
        self.phase = AttackPhase.COMPLETED
        self.future.set_result(outcome)
        return True

    def cancel(self) -> bool:
        """Stop the running pipeline and drop the pending outcome."""
        if self.task is not None and not self.task.done():
            self.task.cancel()
        return self.future.cancel()

    def __repr__(self) -> str:
        return f"AttackSession({self.attack_id[:8]}, {self.attacker.name}, {self.phase.name})"


class AttackOrchestrator:
    """Sequences hit, dodge, damage and effects for every attack in a battle."""

    def __init__(self, session: "BattleSession"):
        self.session = session

    def _emit_log(self, message: str, category: str = "BATTLE", level: str = "INFO") -> None:
        self.session.emit_log(message, category, level, source="AttackOrchestrator")

    def _publish(self, event) -> None:
        self.session.event_manager.publish(event, source="AttackOrchestrator")

    # ============== Entry point ==============

    async def perform_attack(
        self,
        attacker: "Combatant",
        target: Union["Combatant", str, None],
        move: Optional[Move] = None,
    ) -> AttackOutcome:
        """Resolve one attack from start to finish.

        Waits for any attack the same attacker already has in flight. The
        pipeline runs in its own task so that a force-clear can cancel it;
        a cancelled pipeline yields a CANCELLED outcome and releases the
        attacker's lock.

        Args:
            attacker: The attacking combatant
            target: Target combatant or its id
            move: Move to use; picked with ``select_move`` when omitted

        Returns:
            The attack outcome. Failures are reported through its status.
        """
        async with self.session.attack_lock(attacker):
            attack = AttackSession(attacker, target, move)
            self.session.active_attacks[attack.attack_id] = attack
            attack.task = asyncio.ensure_future(self._run(attack))
            try:
                await asyncio.wait({attack.task})
            except asyncio.CancelledError:
                attack.cancel()
                raise
            finally:
                self.session.active_attacks.pop(attack.attack_id, None)
                self.session.flush_events()

            if attack.task.cancelled():
                outcome = self._cancelled_outcome(attack)
            else:
                outcome = attack.task.result()
            attack.complete(outcome)
        return outcome

    def _cancelled_outcome(self, attack: AttackSession) -> AttackOutcome:
        outcome = AttackOutcome(
            attack_id=attack.attack_id,
            attacker=attack.attacker,
            status=AttackStatus.CANCELLED,
            phase=attack.phase,
            reason=f"attack cancelled during {attack.phase.name}",
        )
        self._emit_log(f"{attack.attacker.name}'s attack was cancelled", "WARNING", "WARNING")
        self._publish(AttackResolved(turn=self.session.turn, outcome=outcome))
        self.session.flush_events()
        return outcome

    async def _run(self, attack: AttackSession) -> AttackOutcome:
        attacker = attack.attacker
        outcome = AttackOutcome(attack_id=attack.attack_id, attacker=attacker)

        try:
            target = self._resolve_target(attack)
            outcome.target = target
            slot = self.select_move(attacker, target, attack.requested_move)
            move = slot.move
            outcome.move = move

            if (move.ranged and not move.targets_self
                    and self.session.positioning.line_of_sight_blocked(attacker, target)):
                raise LineOfSightBlockedError(attacker.name, target.name)

            slot.spend()
            if move.targets_self:
                self._emit_log(f"{attacker.name} uses {move.name}!")
            else:
                self._emit_log(f"{attacker.name} uses {move.name} on {target.name}!")
            self._publish(AttackStarted(
                turn=self.session.turn,
                attack_id=attack.attack_id,
                attacker=attacker,
                target=target,
                move=move,
            ))

            if move.targets_self:
                self._resolve_self_move(attack, outcome, move)
            else:
                await self._resolve_attack(attack, outcome, target, move)
        except InvalidTargetError as e:
            self._abort(outcome, AttackStatus.INVALID_TARGET, str(e))
        except NoValidMoveError as e:
            self._abort(outcome, AttackStatus.CANNOT_ATTACK, str(e))
        except LineOfSightBlockedError as e:
            self._abort(outcome, AttackStatus.BLOCKED, str(e))
        else:
            await self._notify_presentation("on_attack_animation_complete", outcome)

        attack.advance(AttackPhase.COMPLETED)
        outcome.phase = AttackPhase.COMPLETED
        self._publish(AttackResolved(turn=self.session.turn, outcome=outcome))
        return outcome

    def _abort(self, outcome: AttackOutcome, status: AttackStatus, reason: str) -> None:
        outcome.status = status
        outcome.reason = reason
        self._emit_log(f"Attack aborted: {reason}", "WARNING", "WARNING")

    def _resolve_target(self, attack: AttackSession) -> "Combatant":
        attacker = attack.attacker
        requested = attack.requested_target
        if not attacker.is_alive:
            raise NoValidMoveError(attacker.name)

        if requested is None:
            if attack.requested_move is not None and attack.requested_move.targets_self:
                return attacker
            raise InvalidTargetError(None, "no target given")

        if isinstance(requested, str):
            target = self.session.get_combatant(requested)
            if target is None:
                raise InvalidTargetError(requested)
        else:
            target = requested

        if not target.is_alive:
            raise InvalidTargetError(target.combatant_id, f"{target.name} is already defeated")
        move = attack.requested_move
        if target is attacker and (move is None or not move.targets_self):
            raise InvalidTargetError(target.combatant_id, f"{attacker.name} cannot target itself")
        return target

    # ============== Move selection ==============

    def expected_damage(self, move: Move, target: "Combatant") -> float:
        if move.is_status:
            return 0.0
        return move.power * get_type_effectiveness(move.move_type, target.types)

    def select_move(
        self,
        attacker: "Combatant",
        target: "Combatant",
        requested: Optional[Move] = None,
    ) -> MoveSlot:
        """Pick the move slot to attack with.

        A requested move must be on the move list (struggle is always
        allowed), have PP left and reach the target. Otherwise the usable
        move with the highest expected damage is chosen, with status moves
        ranked last. An attacker out of PP on every move struggles.

        Raises:
            NoValidMoveError: If nothing can be used against the target
        """
        distance = self.session.positioning.min_distance(attacker, target)

        if requested is not None:
            slot = attacker.moveset.find(requested.name)
            if slot is None:
                if requested.name != STRUGGLE.name:
                    raise NoValidMoveError(attacker.name, distance)
                slot = MoveSlot(requested)
            if not slot.has_pp() or not self._in_range(slot.move, distance):
                raise NoValidMoveError(attacker.name, distance)
            return slot

        usable = [
            slot for slot in attacker.moves
            if not slot.move.reaction_only
            and slot.has_pp()
            and self._in_range(slot.move, distance)
        ]
        if usable:
            return max(
                usable,
                key=lambda slot: (
                    not slot.move.is_status,
                    self.expected_damage(slot.move, target),
                ),
            )

        if not any(slot.has_pp() for slot in attacker.moves) and distance <= STRUGGLE.range:
            self._emit_log(f"{attacker.name} has no moves left!")
            return MoveSlot(STRUGGLE)
        raise NoValidMoveError(attacker.name, distance)

    @staticmethod
    def _in_range(move: Move, distance: int) -> bool:
        return move.targets_self or distance <= move.range

    # ============== Resolution ==============

    def _resolve_self_move(self, attack: AttackSession, outcome: AttackOutcome, move: Move) -> None:
        """Moves on the user skip the attack roll entirely."""
        attack.advance(AttackPhase.HITTING)
        outcome.effects = self.session.effects.apply_move_effects(
            outcome.attacker, None, move, hit=True, net_successes=0
        )
        attack.advance(AttackPhase.RESOLVED)
        outcome.phase = AttackPhase.RESOLVED

    async def _resolve_attack(
        self,
        attack: AttackSession,
        outcome: AttackOutcome,
        target: "Combatant",
        move: Move,
    ) -> None:
        attacker = outcome.attacker
        attack.advance(AttackPhase.ROLLING_HIT)
        outcome.phase = AttackPhase.ROLLING_HIT

        hit = self.session.hit_resolver.resolve(attacker, move, target)
        outcome.hit_result = hit
        self._publish(AttackRolled(
            turn=self.session.turn,
            attack_id=attack.attack_id,
            attacker=attacker,
            roll=hit.roll,
            threshold=hit.threshold,
            hit=hit.hit,
            forced_count=hit.forced_count,
            luck_tokens_used=hit.luck_tokens_used,
        ))

        targets = [target]
        if move.cone > 0:
            caught = find_cone_targets(attacker, target, move, self.session.living_combatants())
            if caught:
                names = ", ".join(c.name for c in caught)
                self._emit_log(f"The {move.name} cone also catches {names}!")
            targets.extend(caught)

        for each in targets:
            result = await self._strike(attack, outcome, each, move, hit)
            outcome.results.append(result)

        # Counted once per attack, however many targets the cone caught
        if move.sand_attack and outcome.hit:
            self.session.weather.register_sand_attack(attacker)

        if outcome.hit:
            attack.advance(AttackPhase.RESOLVED)
            outcome.phase = AttackPhase.RESOLVED
        else:
            outcome.phase = attack.phase

    async def _strike(
        self,
        attack: AttackSession,
        outcome: AttackOutcome,
        target: "Combatant",
        move: Move,
        hit: HitResult,
    ) -> TargetResult:
        """Resolve the attack roll against one target."""
        attacker = outcome.attacker
        session = self.session
        roll = hit.roll
        threshold = session.weather.evasion_threshold(target)
        landed = not hit.auto_miss and roll.net_successes >= threshold

        if not landed or not target.is_alive:
            attack.advance(AttackPhase.MISSED)
            self._emit_log(f"{attacker.name}'s {move.name} misses {target.name}!")
            self._publish(AttackMissed(
                turn=session.turn,
                attack_id=attack.attack_id,
                attacker=attacker,
                target=target,
                net_successes=roll.net_successes,
                auto_miss=hit.auto_miss,
            ))
            effects = session.effects.apply_move_effects(
                attacker, target, move, hit=False, net_successes=roll.net_successes
            )
            return TargetResult(target=target, hit=False, net_successes=roll.net_successes,
                                effects=effects)

        attack.advance(AttackPhase.DODGING)
        critical_situation = session.damage_calculator.is_critical(attacker, move, roll.net_successes)
        if move.ranged:
            dodge, _ = await asyncio.gather(
                self._dodge(attacker, target, roll, move, critical_situation),
                self._notify_presentation("on_projectile_resolved", outcome),
            )
        else:
            dodge = await self._dodge(attacker, target, roll, move, critical_situation)

        if dodge.success:
            attack.advance(AttackPhase.DODGED)
            self._publish(AttackDodged(
                turn=session.turn,
                attack_id=attack.attack_id,
                attacker=attacker,
                target=target,
                dodge=dodge,
            ))
            effects = session.effects.apply_move_effects(
                attacker, target, move, hit=False, net_successes=roll.net_successes
            )
            return TargetResult(target=target, hit=True, net_successes=roll.net_successes,
                                dodge=dodge, effects=effects)

        if dodge.botch_bonus:
            roll = roll.with_bonus(dodge.botch_bonus)
        if dodge.reaction_triggered and dodge.reaction_move is not None:
            self._emit_log(f"{target.name} answers with {dodge.reaction_move.name}!")

        attack.advance(AttackPhase.HITTING)
        result = TargetResult(target=target, hit=True, net_successes=roll.net_successes, dodge=dodge)
        effectiveness = self._apply_hits(attacker, target, move, roll.net_successes, result)
        result.effects = session.effects.apply_move_effects(
            attacker, target, move,
            hit=True,
            net_successes=roll.net_successes,
            damage_dealt=result.damage_dealt,
            effectiveness=effectiveness,
        )
        result.defeated = target.is_defeated
        return result

    async def _dodge(
        self,
        attacker: "Combatant",
        target: "Combatant",
        roll: AttackRoll,
        move: Move,
        critical_situation: bool,
    ) -> DodgeResult:
        resolver = self.session.dodge_resolver
        dodge = resolver.attempt_dodge(attacker, target, roll, move, critical_situation)
        resolver.execute_dodge(target, dodge)
        return dodge

    def _apply_hits(
        self,
        attacker: "Combatant",
        target: "Combatant",
        move: Move,
        net_successes: int,
        result: TargetResult,
    ) -> float:
        """Run the damage pipeline once per strike and apply each hit.

        Returns:
            Type effectiveness of the last strike
        """
        session = self.session
        effectiveness = 1.0
        strikes = max(1, move.hit_count)
        landed = 0

        for _ in range(strikes):
            if not target.is_alive:
                break
            damage = session.damage_calculator.calculate(attacker, target, move, net_successes)
            result.damage.append(damage)
            effectiveness = damage.effectiveness
            if move.power <= 0:
                break

            # Immune hits still go through the applicator so the prevention is reported
            amount = damage.base_damage if damage.is_immune else damage.final_damage
            event = session.effects.apply_damage(
                target, amount, DamageSource.ATTACK,
                source=attacker,
                move=move,
                is_critical=damage.is_critical,
                effectiveness=damage.effectiveness,
            )
            if event.prevented:
                break
            landed += 1
            result.damage_dealt += event.final_amount
            self._narrate_hit(attacker, target, move, damage, event.final_amount)

        if strikes > 1 and landed > 0:
            self._emit_log(f"Hit {landed} time(s)!")
        return effectiveness

    def _narrate_hit(self, attacker, target, move: Move, damage: DamageResult, dealt: int) -> None:
        for modifier in damage.ability_modifiers:
            self._emit_log(modifier)
        if damage.is_critical:
            self._emit_log("A critical hit!")
        if damage.effectiveness_tag:
            self._emit_log(f"It's {damage.effectiveness_tag}!")
        if damage.weather_tag:
            self._emit_log(damage.weather_tag, "WEATHER")
        self._emit_log(
            f"{move.name} hits {target.name} for {dealt} damage "
            f"({target.hp_current}/{target.hp_max} HP left)"
        )

    # ============== Presentation ==============

    async def _notify_presentation(self, hook_name: str, outcome: AttackOutcome) -> None:
        """Await a presentation hook. Failures are logged and never block the battle."""
        try:
            await self._call_hook(hook_name, outcome)
        except PresentationError as e:
            outcome.presentation_errors.append(str(e))
            self._emit_log(str(e), "WARNING", "WARNING")

    async def _call_hook(self, hook_name: str, outcome: AttackOutcome) -> None:
        """Await one hook, bounded by the rules' completion timeout."""
        hook = getattr(self.session.presentation, hook_name)
        timeout = self.session.rules.attack_completion_timeout
        try:
            await asyncio.wait_for(hook(outcome), timeout)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError as e:
            raise PresentationError(hook_name, TimeoutError(f"no response after {timeout}s")) from e
        except Exception as e:
            raise PresentationError(hook_name, e) from e

    # ============== Quiescence ==============

    async def complete_all_active_attacks(self, timeout: Optional[float] = None) -> int:
        """Wait for every in-flight attack to deliver its outcome.

        Sessions still running when the timeout expires are cancelled and
        dropped from the registry. Cancelling a session stops its pipeline
        task, so the attacker's lock is released and the waiting
        ``perform_attack`` returns a CANCELLED outcome.

        Args:
            timeout: Seconds to wait, defaults to the rules' completion timeout

        Returns:
            Number of sessions that had to be force-cleared
        """
        if timeout is None:
            timeout = self.session.rules.attack_completion_timeout
        active = self.session.active_attacks
        pending = {attack.future for attack in active.values() if not attack.done}
        if not pending:
            active.clear()
            return 0

        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        if not still_pending:
            active.clear()
            return 0

        stragglers = [attack for attack in active.values() if attack.future in still_pending]
        for attack in stragglers:
            attack.cancel()
        active.clear()
        self._emit_log(
            f"Force-cleared {len(stragglers)} attack(s) still in flight after {timeout}s",
            "WARNING", "WARNING"
        )
        return len(stragglers)
