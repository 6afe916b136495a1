"""Grid positioning.

Default implementation of the spatial queries the combat engine asks of the
placement system. Combatants occupy a single tile on a rectangular grid;
terrain that blocks sight and movement is kept in a boolean numpy mask.
"""

from typing import Callable, Iterable, Optional, TYPE_CHECKING

import numpy as np

from ..core.data import Vector2

if TYPE_CHECKING:
    from .entities.combatant import Combatant


# Directions a dodger can step in, (dy, dx), clockwise from north
DODGE_DIRECTIONS = (
    Vector2(-1, 0), Vector2(-1, 1), Vector2(0, 1), Vector2(1, 1),
    Vector2(1, 0), Vector2(1, -1), Vector2(0, -1), Vector2(-1, -1),
)
MAX_DODGE_DISTANCE = 2


class GridPositioning:
    """Answers distance, occupancy, dodge and sight queries on a grid.

    Args:
        combatants: Callable returning the combatants currently on the field
        width: Grid width in tiles
        height: Grid height in tiles
        blocked_tiles: Tiles holding sight-blocking terrain
    """

    def __init__(
        self,
        combatants: Callable[[], Iterable["Combatant"]],
        width: int = 12,
        height: int = 12,
        blocked_tiles: Iterable[Vector2] = (),
    ):
        if width <= 0 or height <= 0:
            raise ValueError("Grid dimensions must be positive")
        self._combatants = combatants
        self.width = width
        self.height = height
        self.blocked = np.zeros((height, width), dtype=bool)
        for tile in blocked_tiles:
            self.set_blocked(tile)

    def set_blocked(self, tile: Vector2, blocked: bool = True) -> None:
        if not self.is_valid_position(tile):
            raise ValueError(f"Tile {tile} is outside the {self.width}x{self.height} grid")
        self.blocked[tile.y, tile.x] = blocked

    def is_valid_position(self, position: Vector2) -> bool:
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def get_combatant_at(self, position: Vector2) -> Optional["Combatant"]:
        """Living combatant standing on a tile, if any."""
        for combatant in self._combatants():
            if combatant.is_alive and combatant.position == position:
                return combatant
        return None

    # ============== Queries used by the combat engine ==============

    def min_distance(self, a: "Combatant", b: "Combatant") -> int:
        """Manhattan distance between two combatants."""
        return a.position.manhattan_distance_to(b.position)

    def occupies_tile(self, combatant: "Combatant", y: int, x: int) -> bool:
        return combatant.position == Vector2(y, x)

    def is_tile_free(self, position: Vector2, ignore: Optional["Combatant"] = None) -> bool:
        """Check that a tile is on the grid, passable and not taken by someone else."""
        if not self.is_valid_position(position):
            return False
        if self.blocked[position.y, position.x]:
            return False
        occupant = self.get_combatant_at(position)
        return occupant is None or occupant is ignore

    def available_dodge_tiles(
        self, target: "Combatant", attacker: "Combatant", is_ranged: bool
    ) -> list[Vector2]:
        """Tiles the target could dodge to.

        Candidates lie one or two steps away in any of the eight directions.
        Against melee the tile must be out of the attacker's reach (Manhattan
        distance above 1). Against a ranged attack the target may not stay on
        the same row, column or diagonal of the attacker that it is on now.

        Returns:
            Free tiles in direction order, nearest first
        """
        origin = target.position
        source = attacker.position
        tiles = []
        for direction in DODGE_DIRECTIONS:
            for distance in range(1, MAX_DODGE_DISTANCE + 1):
                tile = origin + direction * distance
                if not self.is_tile_free(tile, ignore=target):
                    continue
                if is_ranged:
                    if self._stays_in_line(origin, tile, source):
                        continue
                elif tile.manhattan_distance_to(source) <= 1:
                    continue
                tiles.append(tile)
        return tiles

    @staticmethod
    def _stays_in_line(origin: Vector2, tile: Vector2, source: Vector2) -> bool:
        if not (origin.is_aligned_with(source) and tile.is_aligned_with(source)):
            return False
        # Same line means the same direction from the attacker
        before, after = origin - source, tile - source
        return before.y * after.x == before.x * after.y

    def line_of_sight_blocked(self, a: "Combatant", b: "Combatant") -> bool:
        """Check whether a shot from ``a`` to ``b`` is stopped on the way.

        The path steps one tile at a time toward the target. A living ally of
        the shooter or blocking terrain on any intermediate tile stops it.
        """
        for tile in self.tiles_between(a.position, b.position):
            if self.blocked[tile.y, tile.x]:
                return True
            occupant = self.get_combatant_at(tile)
            if occupant is not None and occupant is not a and not occupant.is_enemy_of(a):
                return True
        return False

    def tiles_between(self, start: Vector2, end: Vector2) -> list[Vector2]:
        """Intermediate tiles stepped through from start toward end."""
        steps = start.chebyshev_distance_to(end)
        offset = (end - start).to_numpy().astype(np.float64)
        if steps <= 1:
            return []
        fractions = np.arange(1, steps) / steps
        # Nearest tile to each step along the line, halves rounded up
        ys = np.floor(start.y + offset[0] * fractions + 0.5).astype(int)
        xs = np.floor(start.x + offset[1] * fractions + 0.5).astype(int)
        tiles = []
        for y, x in zip(ys, xs):
            tile = Vector2(int(y), int(x))
            if tile == start or tile == end or not self.is_valid_position(tile):
                continue
            tiles.append(tile)
        return tiles
