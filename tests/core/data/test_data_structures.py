"""
Unit tests for grid coordinates and rounding helpers.
"""
import dataclasses

import numpy as np
import pytest

from creature_combat.core.data import Vector2, round_half_up


class TestVector2:
    """Test Vector2 arithmetic and distance helpers."""

    def test_yx_ordering(self):
        """Test that the first component is the row."""
        vector = Vector2(2, 7)
        assert vector.y == 2
        assert vector.x == 7
        assert vector.to_tuple() == (2, 7)

    def test_arithmetic(self):
        """Test addition, subtraction and scaling."""
        assert Vector2(1, 2) + Vector2(3, 4) == Vector2(4, 6)
        assert Vector2(5, 5) - Vector2(2, 3) == Vector2(3, 2)
        assert Vector2(-1, 1) * 2 == Vector2(-2, 2)

    def test_equality_and_hashing(self):
        """Test that equal vectors collapse in sets and dicts."""
        assert Vector2(1, 1) == Vector2(1, 1)
        assert Vector2(1, 1) != (1, 1)
        assert len({Vector2(1, 1), Vector2(1, 1), Vector2(1, 2)}) == 2

    def test_immutable(self):
        """Test that coordinates cannot be changed in place."""
        vector = Vector2(1, 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            vector.x = 4

    def test_unpacking(self):
        """Test that a vector unpacks in (y, x) order."""
        y, x = Vector2(3, 9)
        assert (y, x) == (3, 9)

    def test_distances(self):
        """Test Manhattan and Chebyshev distances."""
        a, b = Vector2(0, 0), Vector2(3, 4)
        assert a.manhattan_distance_to(b) == 7
        assert a.chebyshev_distance_to(b) == 4

    def test_alignment(self):
        """Test row, column and diagonal alignment."""
        origin = Vector2(5, 5)
        assert origin.is_aligned_with(Vector2(5, 0))
        assert origin.is_aligned_with(Vector2(1, 5))
        assert origin.is_aligned_with(Vector2(2, 8))
        assert not origin.is_aligned_with(Vector2(3, 4))

    def test_conversions(self):
        """Test tuple and numpy conversions."""
        assert Vector2.from_tuple((4, 1)) == Vector2(4, 1)
        array = Vector2(4, 1).to_numpy()
        assert array.dtype == np.int16
        assert array.tolist() == [4, 1]


class TestRoundHalfUp:
    """Test half-up rounding used for damage and stats."""

    def test_halves_round_up(self):
        """Test that .5 always rounds away from the lower integer."""
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(0.5) == 1

    def test_other_values(self):
        """Test ordinary rounding."""
        assert round_half_up(2.49) == 2
        assert round_half_up(7.0) == 7
        assert round_half_up(13.4) == 13
