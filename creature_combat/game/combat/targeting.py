"""Area targeting for cone moves.

A cone opens from the attacker toward its primary target. Anyone whose
Euclidean distance from the attacker is within the move's range and whose
bearing lies inside the half-angle is caught by it. Distances and angles are
computed for all candidates at once with numpy.
"""

import math
from typing import Iterable, TYPE_CHECKING

import numpy as np

from ...core.data import Vector2

if TYPE_CHECKING:
    from ..entities.combatant import Combatant
    from ..entities.moves import Move


FULL_CIRCLE = 360


def cone_mask(
    origin: Vector2,
    aim: Vector2,
    points: np.ndarray,
    reach: float,
    angle: float,
) -> np.ndarray:
    """Boolean mask of the points (an (n, 2) array of y, x) inside a cone.

    Args:
        origin: Apex of the cone
        aim: Point the cone opens toward
        points: Candidate grid positions
        reach: Maximum distance from the apex
        angle: Full opening angle in degrees

    Returns:
        Array of n booleans
    """
    if points.size == 0:
        return np.zeros(0, dtype=bool)

    offsets = points.astype(np.float64) - origin.to_numpy().astype(np.float64)
    distances = np.hypot(offsets[:, 0], offsets[:, 1])
    in_range = distances <= reach
    if angle >= FULL_CIRCLE:
        return in_range

    at_origin = distances == 0
    direction = aim.to_numpy().astype(np.float64) - origin.to_numpy().astype(np.float64)
    norm = np.hypot(direction[0], direction[1])
    if norm == 0:
        # No aim: the cone faces north (decreasing y)
        inside = (offsets[:, 0] < 0) & (np.abs(offsets[:, 1]) < np.abs(offsets[:, 0]))
        return in_range & (inside | at_origin)

    unit = direction / norm
    with np.errstate(divide="ignore", invalid="ignore"):
        cosines = (offsets @ unit) / distances
    half_angle = math.radians(angle / 2)
    inside = np.where(at_origin, True, cosines > math.cos(half_angle))
    return in_range & inside


def is_position_in_cone(origin: Vector2, aim: Vector2, point: Vector2, reach: float, angle: float) -> bool:
    return bool(cone_mask(origin, aim, np.array([point.to_numpy()]), reach, angle)[0])


def find_cone_targets(
    attacker: "Combatant",
    primary: "Combatant",
    move: "Move",
    candidates: Iterable["Combatant"],
) -> list["Combatant"]:
    """Secondary targets caught in a cone move's area.

    The attacker and the primary target are never included, and neither
    are combatants that are already down.
    """
    others = [
        c for c in candidates
        if c is not attacker and c is not primary and c.is_alive
    ]
    if not others or move.cone <= 0:
        return []
    points = np.array([c.position.to_numpy() for c in others])
    mask = cone_mask(attacker.position, primary.position, points, move.range, move.cone)
    return [c for c, caught in zip(others, mask) if caught]
