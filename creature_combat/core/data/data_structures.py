"""Grid position primitives used by combatants and the positioning service."""

from dataclasses import dataclass
import math

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class Vector2:
    """Immutable grid coordinate in (y, x) order.

    The row comes first so a Vector2 indexes numpy grids directly as
    ``grid[v.y, v.x]``.
    """
    y: int
    x: int

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.y + other.y, self.x + other.x)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.y - other.y, self.x - other.x)

    def __mul__(self, scalar: int) -> "Vector2":
        return Vector2(self.y * scalar, self.x * scalar)

    def __iter__(self):
        yield self.y
        yield self.x

    def __repr__(self) -> str:
        return f"Vector2({self.y}, {self.x})"

    def manhattan_distance_to(self, other: "Vector2") -> int:
        """Tiles walked between two points without diagonal steps."""
        return abs(self.y - other.y) + abs(self.x - other.x)

    def chebyshev_distance_to(self, other: "Vector2") -> int:
        """Steps needed when diagonal moves are allowed."""
        return max(abs(self.y - other.y), abs(self.x - other.x))

    def is_aligned_with(self, other: "Vector2") -> bool:
        """Whether both points share a row, column or diagonal."""
        dy = self.y - other.y
        dx = self.x - other.x
        return dy == 0 or dx == 0 or abs(dy) == abs(dx)

    @classmethod
    def from_tuple(cls, coords: tuple[int, int]) -> "Vector2":
        return cls(int(coords[0]), int(coords[1]))

    def to_tuple(self) -> tuple[int, int]:
        return (self.y, self.x)

    def to_numpy(self) -> NDArray[np.int16]:
        return np.array([self.y, self.x], dtype=np.int16)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up.

    Damage and stat values round this way rather than with Python's
    banker's rounding, so 2.5 becomes 3.
    """
    return math.floor(value + 0.5)
