"""Type matchup and stat lookup tables.

The chart is held as an 18x18 numpy matrix indexed by (attacking type,
defending type). Only non-neutral matchups are listed in the source table;
every other cell is 1.0.
"""

from typing import Iterable, Optional

import numpy as np

from .game_enums import MoveCategory, StatName


TYPE_ORDER: tuple[str, ...] = (
    "normal", "fire", "water", "electric", "grass", "ice",
    "fighting", "poison", "ground", "flying", "psychic", "bug",
    "rock", "ghost", "dragon", "dark", "steel", "fairy",
)

TYPE_INDEX: dict[str, int] = {name: index for index, name in enumerate(TYPE_ORDER)}

_MATCHUPS: dict[str, dict[str, float]] = {
    "normal": {"rock": 0.5, "ghost": 0, "steel": 0.5},
    "fire": {"fire": 0.5, "water": 0.5, "grass": 2, "ice": 2, "bug": 2,
             "rock": 0.5, "dragon": 0.5, "steel": 2},
    "water": {"fire": 2, "water": 0.5, "grass": 0.5, "ground": 2, "rock": 2,
              "dragon": 0.5},
    "electric": {"water": 2, "electric": 0.5, "grass": 0.5, "ground": 0,
                 "flying": 2, "dragon": 0.5},
    "grass": {"fire": 0.5, "water": 2, "grass": 0.5, "poison": 0.5, "ground": 2,
              "flying": 0.5, "bug": 0.5, "rock": 2, "dragon": 0.5, "steel": 0.5},
    "ice": {"fire": 0.5, "water": 0.5, "grass": 2, "ice": 0.5, "ground": 2,
            "flying": 2, "dragon": 2, "steel": 0.5},
    "fighting": {"normal": 2, "ice": 2, "poison": 0.5, "flying": 0.5,
                 "psychic": 0.5, "bug": 0.5, "rock": 2, "ghost": 0, "dark": 2,
                 "steel": 2, "fairy": 0.5},
    "poison": {"grass": 2, "poison": 0.5, "ground": 0.5, "rock": 0.5,
               "ghost": 0.5, "steel": 0, "fairy": 2},
    "ground": {"fire": 2, "electric": 2, "grass": 0.5, "poison": 2, "flying": 0,
               "bug": 0.5, "rock": 2, "steel": 2},
    "flying": {"electric": 0.5, "grass": 2, "fighting": 2, "bug": 2,
               "rock": 0.5, "steel": 0.5},
    "psychic": {"fighting": 2, "poison": 2, "psychic": 0.5, "dark": 0,
                "steel": 0.5},
    "bug": {"fire": 0.5, "grass": 2, "fighting": 0.5, "poison": 0.5,
            "flying": 0.5, "psychic": 2, "ghost": 0.5, "dark": 2, "steel": 0.5,
            "fairy": 0.5},
    "rock": {"fire": 2, "ice": 2, "fighting": 0.5, "ground": 0.5, "flying": 2,
             "bug": 2, "steel": 0.5},
    "ghost": {"normal": 0, "psychic": 2, "ghost": 2, "dark": 0.5},
    "dragon": {"dragon": 2, "steel": 0.5, "fairy": 0},
    "dark": {"fighting": 0.5, "psychic": 2, "ghost": 2, "dark": 0.5,
             "fairy": 0.5},
    "steel": {"fire": 0.5, "water": 0.5, "electric": 0.5, "ice": 2, "rock": 2,
              "steel": 0.5, "fairy": 2},
    "fairy": {"fire": 0.5, "fighting": 2, "poison": 0.5, "dragon": 2, "dark": 2,
              "steel": 0.5},
}


def _build_chart() -> np.ndarray:
    chart = np.ones((len(TYPE_ORDER), len(TYPE_ORDER)), dtype=np.float64)
    for attacking, row in _MATCHUPS.items():
        for defending, multiplier in row.items():
            chart[TYPE_INDEX[attacking], TYPE_INDEX[defending]] = multiplier
    chart.setflags(write=False)
    return chart


TYPE_CHART: np.ndarray = _build_chart()


def get_type_effectiveness(move_type: Optional[str], target_types: Iterable[str]) -> float:
    """Get the damage multiplier of a move type against a set of defending types.

    Multipliers of dual-typed defenders are multiplied together. Unknown or
    missing types count as neutral.

    Args:
        move_type: Attacking type tag (case-insensitive)
        target_types: Defending type tags

    Returns:
        Effectiveness multiplier (0, 0.25, 0.5, 1, 2 or 4)
    """
    if not move_type:
        return 1.0
    attacking_index = TYPE_INDEX.get(move_type.lower())
    if attacking_index is None:
        return 1.0

    defending_indices = [
        TYPE_INDEX[t.lower()] for t in target_types
        if t and t.lower() in TYPE_INDEX
    ]
    if not defending_indices:
        return 1.0
    return float(np.prod(TYPE_CHART[attacking_index, defending_indices]))


def effectiveness_description(effectiveness: float) -> str:
    """Human-readable tag for an effectiveness multiplier."""
    if effectiveness == 0:
        return "has no effect"
    if effectiveness < 1:
        return "is not very effective"
    if effectiveness > 1:
        return "is super effective"
    return "is effective"


def stats_for_category(category: MoveCategory) -> tuple[StatName, StatName]:
    """Get the (attacking stat, defending stat) pair used by a move category.

    Physical moves compare attack against defense; special and status moves
    compare special attack against special defense.
    """
    if category == MoveCategory.PHYSICAL:
        return StatName.ATTACK, StatName.DEFENSE
    return StatName.SPECIAL_ATTACK, StatName.SPECIAL_DEFENSE
