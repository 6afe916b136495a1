"""Move templates and per-battle move slots.

Move templates are immutable and loaded from ``move_templates.yaml``. Each
template carries a behavior tag that the effect dispatcher interprets, so no
rule anywhere in the engine keys off a move's name.
"""

import os
from dataclasses import dataclass
from typing import Any, Optional

import yaml

from ...core.data.game_enums import (
    MoveBehavior, MoveCategory, StatChangeTarget, StatName, StatusEffectId, WeatherKind
)
from ...core.errors import ConfigurationError


@dataclass(frozen=True)
class StatChange:
    """Stage change applied by a stat-change move."""
    stat: StatName
    stages: int
    target: StatChangeTarget = StatChangeTarget.TARGET


@dataclass(frozen=True)
class Move:
    """Immutable move template.

    ``power`` is the base damage dice count. ``pp`` of None means the move
    can be used without limit.
    """
    name: str
    move_type: str
    category: MoveCategory
    power: int = 0
    range: int = 1
    pp: Optional[int] = None
    ranged: bool = False
    cone: int = 0
    hit_count: int = 1
    reaction_only: bool = False
    high_crit: bool = False
    recoil_fraction: float = 0.0
    drain_fraction: float = 0.0
    behavior: MoveBehavior = MoveBehavior.NONE
    inflicts: Optional[StatusEffectId] = None
    stat_change: Optional[StatChange] = None
    weather: Optional[WeatherKind] = None
    weather_duration: int = 0
    sand_attack: bool = False

    @property
    def is_status(self) -> bool:
        return self.category == MoveCategory.STATUS

    @property
    def is_melee(self) -> bool:
        return not self.ranged

    @property
    def targets_self(self) -> bool:
        """True for moves that resolve on the user without an attack roll."""
        if self.behavior == MoveBehavior.WEATHER:
            return True
        return (
            self.behavior == MoveBehavior.STAT_CHANGE
            and self.stat_change is not None
            and self.stat_change.target == StatChangeTarget.SELF
        )


class MoveSlot:
    """A move on a combatant's move list with its remaining uses."""

    def __init__(self, move: Move, pp_remaining: Optional[int] = None):
        self.move = move
        self.pp_remaining = move.pp if pp_remaining is None else pp_remaining

    def has_pp(self) -> bool:
        return self.pp_remaining is None or self.pp_remaining > 0

    def spend(self) -> bool:
        """Use up one PP. Returns False when the move is out of uses."""
        if not self.has_pp():
            return False
        if self.pp_remaining is not None:
            self.pp_remaining -= 1
        return True

    def __repr__(self) -> str:
        uses = "inf" if self.pp_remaining is None else self.pp_remaining
        return f"MoveSlot({self.move.name}, pp={uses})"


STRUGGLE = Move(
    name="struggle",
    move_type="normal",
    category=MoveCategory.PHYSICAL,
    power=5,
    range=1,
    recoil_fraction=0.5,
    behavior=MoveBehavior.RECOIL,
)


def _parse_enum(enum_cls, value: Any, key: str):
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        raise ConfigurationError(key, value, f"unknown {enum_cls.__name__}") from None


def parse_move(name: str, data: dict[str, Any]) -> Move:
    """Build a Move from one YAML template entry.

    Raises:
        ConfigurationError: If the entry holds an unknown enum value
    """
    stat_change = None
    if data.get("stat_change"):
        change = data["stat_change"]
        stat_change = StatChange(
            stat=_parse_enum(StatName, change["stat"], f"{name}.stat_change.stat"),
            stages=int(change["stages"]),
            target=_parse_enum(
                StatChangeTarget, change.get("target", "target"), f"{name}.stat_change.target"
            ),
        )

    inflicts = None
    if data.get("inflicts"):
        inflicts = _parse_enum(StatusEffectId, data["inflicts"], f"{name}.inflicts")

    weather = None
    if data.get("weather"):
        weather = _parse_enum(WeatherKind, data["weather"], f"{name}.weather")

    return Move(
        name=name,
        move_type=str(data.get("type", "normal")).lower(),
        category=_parse_enum(MoveCategory, data.get("category", "physical"), f"{name}.category"),
        power=int(data.get("power", 0)),
        range=int(data.get("range", 1)),
        pp=int(data["pp"]) if data.get("pp") is not None else None,
        ranged=bool(data.get("ranged", False)),
        cone=int(data.get("cone", 0)),
        hit_count=int(data.get("hit_count", 1)),
        reaction_only=bool(data.get("reaction_only", False)),
        high_crit=bool(data.get("high_crit", False)),
        recoil_fraction=float(data.get("recoil_fraction", 0.0)),
        drain_fraction=float(data.get("drain_fraction", 0.0)),
        behavior=_parse_enum(MoveBehavior, data.get("behavior", "none"), f"{name}.behavior"),
        inflicts=inflicts,
        stat_change=stat_change,
        weather=weather,
        weather_duration=int(data.get("weather_duration", 0)),
        sand_attack=bool(data.get("sand_attack", False)),
    )


def load_move_templates(yaml_path: Optional[str] = None) -> dict[str, Move]:
    """Load move templates from YAML.

    Args:
        yaml_path: Path to a templates file, defaults to the packaged one

    Returns:
        Dictionary mapping move names to Move templates
    """
    if yaml_path is None:
        yaml_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "move_templates.yaml")

    try:
        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Move templates file not found: {yaml_path}")

    moves = {name: parse_move(name, entry or {}) for name, entry in data.get("moves", {}).items()}
    moves.setdefault(STRUGGLE.name, STRUGGLE)
    return moves


MOVE_TEMPLATES: dict[str, Move] = load_move_templates()


def get_move(name: str) -> Move:
    """Look up a packaged move template by name.

    Raises:
        KeyError: If no template with that name exists
    """
    try:
        return MOVE_TEMPLATES[name]
    except KeyError:
        raise KeyError(f"Unknown move: {name}") from None
