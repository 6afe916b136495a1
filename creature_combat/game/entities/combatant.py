"""Component-based Combatant.

The Combatant wraps an Entity holding Identity, Health, Stats, Status, Luck,
Moveset and Position components, and exposes the properties the combat
pipeline reads most often.

Examples:
    # Frequent reads (direct properties)
    if target.is_alive and target.has_type("rock"):
        ...

    # Less frequent access (components)
    target.stats.change_stage(StatName.DEFENSE, 1)
    target.luck.refill()
"""

import os
from typing import Any, Iterable, Optional

import yaml

from ...core.data import (
    AttackerStrategy, ComponentType, ForcingPolicy, StatName, StatusEffectId,
    Team, TrainerClass, Vector2,
)
from ...core.entities import Entity
from .components import (
    HealthComponent, IdentityComponent, LuckComponent, MovesetComponent,
    PositionComponent, StatsComponent, StatusComponent, max_luck_tokens,
)
from .moves import Move, MoveSlot, get_move


class Combatant:
    """A battle participant assembled from components."""

    def __init__(self, entity: Entity):
        self.entity = entity

    # ============== Core Properties ==============

    @property
    def combatant_id(self) -> str:
        return self.entity.entity_id

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def team(self) -> Team:
        return self.identity.team

    @property
    def types(self) -> tuple[str, ...]:
        return self.identity.types

    @property
    def ability(self) -> Optional[str]:
        return self.identity.ability

    @property
    def hp_current(self) -> int:
        return self.health.hp_current

    @property
    def hp_max(self) -> int:
        return self.health.hp_max

    @property
    def is_alive(self) -> bool:
        return self.health.is_alive()

    @property
    def is_defeated(self) -> bool:
        return self.health.defeated

    @property
    def position(self) -> Vector2:
        return self.placement.position

    @position.setter
    def position(self, value: Vector2) -> None:
        self.placement.position = value

    @property
    def luck_tokens(self) -> int:
        return self.luck.tokens

    @property
    def max_luck_tokens(self) -> int:
        return self.luck.max_tokens

    @property
    def moves(self) -> list[MoveSlot]:
        return self.moveset.slots

    def has_type(self, type_name: str) -> bool:
        return self.identity.has_type(type_name)

    def has_any_type(self, *type_names: str) -> bool:
        return any(self.identity.has_type(t) for t in type_names)

    def has_ability(self, *abilities: str) -> bool:
        return self.identity.has_ability(*abilities)

    def has_status(self, effect_id: StatusEffectId) -> bool:
        return self.status.has(effect_id)

    def stat(self, stat: StatName) -> int:
        """Current value of a stat with stages applied."""
        return self.stats.get_value(stat)

    def change_stage(self, stat: StatName, delta: int) -> int:
        """Shift a stat stage. Returns the delta actually applied."""
        return self.stats.change_stage(stat, delta)

    def is_enemy_of(self, other: "Combatant") -> bool:
        return not self.identity.is_ally_of(other.identity)

    # ============== Components ==============

    @property
    def identity(self) -> IdentityComponent:
        return self.entity.require_component(ComponentType.IDENTITY, IdentityComponent)

    @property
    def health(self) -> HealthComponent:
        return self.entity.require_component(ComponentType.HEALTH, HealthComponent)

    @property
    def stats(self) -> StatsComponent:
        return self.entity.require_component(ComponentType.STATS, StatsComponent)

    @property
    def status(self) -> StatusComponent:
        return self.entity.require_component(ComponentType.STATUS, StatusComponent)

    @property
    def luck(self) -> LuckComponent:
        return self.entity.require_component(ComponentType.LUCK, LuckComponent)

    @property
    def moveset(self) -> MovesetComponent:
        return self.entity.require_component(ComponentType.MOVESET, MovesetComponent)

    @property
    def placement(self) -> PositionComponent:
        return self.entity.require_component(ComponentType.POSITION, PositionComponent)

    def __repr__(self) -> str:
        return f"Combatant({self.name}, {self.team.name}, hp={self.hp_current}/{self.hp_max})"


def create_combatant(
    name: str,
    team: Team,
    hp: int,
    stats: Optional[dict[StatName, int]] = None,
    types: Iterable[str] = (),
    ability: Optional[str] = None,
    moves: Iterable[Move] = (),
    position: Optional[Vector2] = None,
    base_stat_total: int = 500,
    strategy: AttackerStrategy = AttackerStrategy.STANDARD,
    forcing_policy: ForcingPolicy = ForcingPolicy.ALWAYS,
    trainer_class: Optional[TrainerClass] = None,
    crit_threshold: Optional[int] = None,
    combatant_id: Optional[str] = None,
) -> Combatant:
    """Assemble a combatant entity with all of its components.

    Args:
        name: Display name
        team: Team affiliation
        hp: Maximum (and starting) hit points
        stats: Base stats; missing stats default to 0
        types: Up to two type tags
        ability: Ability tag
        moves: Move templates for the move list
        position: Starting grid position, defaults to (0, 0)
        base_stat_total: Species strength, sets the luck token cap
        strategy: Attacker strategy
        forcing_policy: Forced reroll policy
        trainer_class: Trainer class of the owner
        crit_threshold: Per-combatant base critical threshold
        combatant_id: Optional fixed id

    Returns:
        The assembled Combatant
    """
    entity = Entity(combatant_id)
    entity.add_component(IdentityComponent(
        entity, name, team,
        types=tuple(types),
        ability=ability,
        trainer_class=trainer_class,
        strategy=strategy,
        forcing_policy=forcing_policy,
        base_stat_total=base_stat_total,
        crit_threshold=crit_threshold,
    ))
    entity.add_component(HealthComponent(entity, hp))
    entity.add_component(StatsComponent(entity, stats or {}))
    entity.add_component(StatusComponent(entity))
    entity.add_component(LuckComponent(entity, max_luck_tokens(base_stat_total)))
    entity.add_component(MovesetComponent(entity, [MoveSlot(move) for move in moves]))
    entity.add_component(PositionComponent(entity, position or Vector2(0, 0)))
    return Combatant(entity)


def create_combatant_from_data(data: dict[str, Any], team: Team) -> Combatant:
    """Build a combatant from a roster entry as loaded from YAML.

    Stat keys use the hyphenated stat names (``special-attack``), moves are
    listed by template name, and ``position`` is a ``[y, x]`` pair.
    """
    stats = {StatName(key): int(value) for key, value in data.get("stats", {}).items()}
    trainer_class = data.get("trainer_class")
    return create_combatant(
        name=data["name"],
        team=team,
        hp=int(data["hp"]),
        stats=stats,
        types=data.get("types", ()),
        ability=data.get("ability"),
        moves=[get_move(move_name) for move_name in data.get("moves", [])],
        position=Vector2.from_tuple(tuple(data.get("position", (0, 0)))),
        base_stat_total=int(data.get("base_stat_total", 500)),
        strategy=AttackerStrategy(data.get("strategy", "standard")),
        forcing_policy=ForcingPolicy(data.get("forcing_policy", "always")),
        trainer_class=TrainerClass(trainer_class) if trainer_class else None,
    )


def load_roster(yaml_path: Optional[str] = None) -> dict[Team, list[Combatant]]:
    """Load the teams for a battle from a roster file.

    The file maps team names (``player``, ``enemy``...) to lists of
    combatant entries.

    Args:
        yaml_path: Path to a roster file, defaults to the packaged demo roster

    Returns:
        Dictionary mapping each team to its combatants
    """
    if yaml_path is None:
        yaml_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "demo_roster.yaml")

    try:
        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Roster file not found: {yaml_path}")

    roster: dict[Team, list[Combatant]] = {}
    for team_name, entries in data.get("teams", {}).items():
        team = Team[str(team_name).upper()]
        roster[team] = [create_combatant_from_data(entry, team) for entry in entries or []]
    return roster
