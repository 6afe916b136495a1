"""
Battle session.

The BattleSession owns every piece of mutable battle state: the roster and
turn order, the weather, the dice, the event bus and log, and the registry
of attacks in flight. Combat systems receive the session and reach each
other through it; nothing lives at module level.
"""

import asyncio
from typing import Callable, Iterable, Optional, Union

import numpy as np

from ..core.data import CombatRules, StatName, Team, TrainerClass, Vector2, load_combat_rules
from ..core.events import EventManager, LogMessage, TurnEnded, TurnStarted
from ..core.interfaces import (
    NoReactions, NullPresentation, PositioningService, PresentationHooks, ReactionSystem,
)
from .combat.attack_orchestrator import AttackOrchestrator, AttackOutcome, AttackSession
from .combat.damage_calculator import DamageCalculator
from .combat.defeat_resolver import DefeatResolver
from .combat.dice import DiceRoller
from .combat.dodge_resolution import DodgeResolver
from .combat.effects import EffectApplicator
from .combat.hit_resolution import HitResolver
from .combat.status_effects import StatusEffectManager
from .entities.combatant import Combatant
from .entities.moves import Move
from .managers.log_manager import LogManager, parse_log_level
from .managers.weather_manager import WeatherManager
from .positioning import GridPositioning


TargetChooser = Callable[[Combatant], Optional[Combatant]]


class BattleSession:
    """One battle's worth of state and the systems that act on it."""

    def __init__(
        self,
        rules: Optional[CombatRules] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        positioning: Optional[PositioningService] = None,
        presentation: Optional[PresentationHooks] = None,
        reactions: Optional[ReactionSystem] = None,
        grid_size: tuple[int, int] = (12, 12),
        blocked_tiles: Iterable[Vector2] = (),
        echo: Optional[Callable[[str], None]] = None,
        enable_debug_logging: bool = False,
    ):
        """Initialize the session and all of its systems.

        Args:
            rules: Rule constants, loaded from the packaged YAML when omitted
            seed: Seed for the battle's dice
            rng: Pre-built numpy generator, takes precedence over ``seed``
            positioning: Spatial collaborator, a GridPositioning by default
            presentation: Animation hooks, no-op by default
            reactions: Reaction collaborator, never triggers by default
            grid_size: (height, width) of the default grid
            blocked_tiles: Sight-blocking tiles on the default grid
            echo: Callback receiving each visible log line
            enable_debug_logging: Trace event bus traffic
        """
        self.rules = rules or load_combat_rules()
        self.dice = DiceRoller(self.rules, seed=seed, rng=rng)
        self.event_manager = EventManager(enable_debug_logging=enable_debug_logging)
        self.log_manager = LogManager(self.event_manager, echo=echo)
        if enable_debug_logging:
            self.event_manager.set_debug_callback(self.log_manager.system)

        self.turn = 0
        self.round = 0
        self.combatants: dict[str, Combatant] = {}
        self.turn_order: list[Combatant] = []

        # Systems
        self.weather = WeatherManager(self)
        self.status_effects = StatusEffectManager(self)
        self.effects = EffectApplicator(self)
        self.defeat_resolver = DefeatResolver(self)
        self.hit_resolver = HitResolver(self)
        self.dodge_resolver = DodgeResolver(self)
        self.damage_calculator = DamageCalculator(self)
        self.orchestrator = AttackOrchestrator(self)

        # Collaborators
        height, width = grid_size
        self.positioning = positioning or GridPositioning(
            self.living_combatants, width=width, height=height, blocked_tiles=blocked_tiles
        )
        self.presentation = presentation or NullPresentation()
        self.reactions = reactions or NoReactions()

        # Attacks in flight
        self.active_attacks: dict[str, AttackSession] = {}
        self._attack_locks: dict[str, asyncio.Lock] = {}

    # ============== Logging and events ==============

    def emit_log(
        self,
        message: str,
        category: str = "BATTLE",
        level: str = "INFO",
        source: str = "BattleSession",
    ) -> None:
        """Publish a narration line for the log manager."""
        self.event_manager.publish(
            LogMessage(
                turn=self.turn,
                message=message,
                category=category,
                level=parse_log_level(level),
                source=source,
            ),
            source=source,
        )

    def flush_events(self) -> int:
        """Deliver every queued event. Returns the number processed."""
        return self.event_manager.process_events()

    def get_battle_log(self) -> list[str]:
        self.flush_events()
        return self.log_manager.get_battle_log()

    # ============== Roster ==============

    def add_combatant(self, combatant: Combatant) -> None:
        """Put a combatant on the field and slot it into the turn order.

        Raises:
            ValueError: If a combatant with the same id is already present
        """
        if combatant.combatant_id in self.combatants:
            raise ValueError(f"Combatant {combatant.combatant_id} is already in the battle")
        self.combatants[combatant.combatant_id] = combatant
        self.turn_order.append(combatant)
        # Stable sort keeps entry order among equal initiative
        self.turn_order.sort(key=lambda c: c.stat(StatName.INITIATIVE), reverse=True)
        self.weather.on_combatant_entered(combatant)
        self.emit_log(f"{combatant.name} enters the battle.", "SYSTEM")
        if combatant.identity.trainer_class == TrainerClass.BRAWLER:
            charges = self.rules.brawler_protection_charges
            combatant.identity.protection_charges = charges
            self.emit_log(f"{combatant.name} is shielded by its brawler trainer ({charges} charges).", "SYSTEM")

    def add_team(self, combatants: Iterable[Combatant]) -> None:
        for combatant in combatants:
            self.add_combatant(combatant)

    def get_combatant(self, combatant_id: str) -> Optional[Combatant]:
        return self.combatants.get(combatant_id)

    def living_combatants(self) -> list[Combatant]:
        """Combatants still standing, in turn order."""
        return [c for c in self.turn_order if c.is_alive]

    def remove_from_turn_order(self, combatant: Combatant) -> bool:
        """Take a defeated combatant out of the turn order. It stays on the roster."""
        if combatant not in self.turn_order:
            return False
        self.turn_order.remove(combatant)
        return True

    def living_teams(self) -> set[Team]:
        return {c.team for c in self.living_combatants()}

    def is_battle_over(self) -> bool:
        return len(self.living_teams()) <= 1

    def winning_team(self) -> Optional[Team]:
        teams = self.living_teams()
        if len(teams) == 1:
            return next(iter(teams))
        return None

    def nearest_enemy(self, combatant: Combatant) -> Optional[Combatant]:
        """Closest living opponent; ties go to whoever acts first."""
        enemies = [c for c in self.living_combatants() if c.is_enemy_of(combatant)]
        if not enemies:
            return None
        return min(enemies, key=lambda c: self.positioning.min_distance(combatant, c))

    # ============== Attacks ==============

    def attack_lock(self, attacker: Combatant) -> asyncio.Lock:
        """The lock serializing this attacker's attacks."""
        if attacker.combatant_id not in self._attack_locks:
            self._attack_locks[attacker.combatant_id] = asyncio.Lock()
        return self._attack_locks[attacker.combatant_id]

    async def perform_attack(
        self,
        attacker: Combatant,
        target: Union[Combatant, str, None],
        move: Optional[Move] = None,
    ) -> AttackOutcome:
        return await self.orchestrator.perform_attack(attacker, target, move)

    async def complete_all_active_attacks(self, timeout: Optional[float] = None) -> int:
        return await self.orchestrator.complete_all_active_attacks(timeout)

    # ============== Turn loop ==============

    async def run_turn(
        self,
        combatant: Combatant,
        choose_target: Optional[TargetChooser] = None,
    ) -> Optional[AttackOutcome]:
        """Play one combatant's turn: status checks, an attack, end-of-turn ticks.

        Args:
            combatant: The acting combatant
            choose_target: Picks the target, defaults to the nearest enemy

        Returns:
            The attack outcome, or None if the combatant did not attack
        """
        if not combatant.is_alive:
            return None

        self.turn += 1
        self.event_manager.publish(TurnStarted(turn=self.turn, combatant=combatant), source="BattleSession")

        outcome = None
        skip = self.status_effects.process_turn_start(combatant)
        if combatant.is_alive and not skip:
            chooser = choose_target or self.nearest_enemy
            target = chooser(combatant)
            if target is not None:
                outcome = await self.perform_attack(combatant, target)

        if combatant.is_alive:
            self.status_effects.process_turn_end(combatant)
        self.event_manager.publish(TurnEnded(turn=self.turn, combatant=combatant), source="BattleSession")
        self.flush_events()
        return outcome

    def end_round(self) -> None:
        """Apply the weather's periodic effects, then count it down."""
        self.weather.apply_periodic_effects()
        self.weather.tick()
        self.flush_events()

    async def run_round(self, choose_target: Optional[TargetChooser] = None) -> list[AttackOutcome]:
        """Give every living combatant one turn, in initiative order."""
        self.round += 1
        self.emit_log(f"--- Round {self.round} ---", "SYSTEM")
        outcomes = []
        for combatant in list(self.turn_order):
            if self.is_battle_over():
                break
            outcome = await self.run_turn(combatant, choose_target)
            if outcome is not None:
                outcomes.append(outcome)
        await self.complete_all_active_attacks()
        if not self.is_battle_over():
            self.end_round()
        return outcomes

    async def run_battle(
        self,
        max_rounds: int = 20,
        choose_target: Optional[TargetChooser] = None,
    ) -> Optional[Team]:
        """Play rounds until one team is left or the round limit is reached.

        Returns:
            The winning team, or None for a draw
        """
        while self.round < max_rounds and not self.is_battle_over():
            await self.run_round(choose_target)
        winner = self.winning_team()
        if winner is not None:
            self.emit_log(f"The {winner.name.lower()} team wins the battle!", "SYSTEM")
        else:
            self.emit_log("The battle ends without a winner.", "SYSTEM")
        self.end_battle()
        return winner

    def end_battle(self) -> None:
        """Reset battle-scoped state that must not leak into the next battle."""
        self.weather.reset()
        self.flush_events()
