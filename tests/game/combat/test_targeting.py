"""
Unit tests for cone targeting.
"""
import numpy as np
import pytest

from creature_combat.core.data import Team, Vector2
from creature_combat.game.combat.targeting import cone_mask, find_cone_targets, is_position_in_cone
from creature_combat.game.entities import get_move
from tests.test_utils import make_combatant


ORIGIN = Vector2(5, 5)
AIM_EAST = Vector2(5, 9)


class TestConeMask:
    """Test the vectorized cone membership test."""

    @pytest.mark.parametrize("point,expected", [
        ((5, 7), True),
        ((6, 8), True),
        ((5, 11), False),
        ((2, 5), False),
        ((7, 7), False),
        ((5, 3), False),
    ])
    def test_narrow_cone(self, point, expected):
        """Test membership in a 45 degree cone of reach 4 aimed east."""
        assert is_position_in_cone(ORIGIN, AIM_EAST, Vector2(*point), 4, 45) == expected

    def test_mask_shape(self):
        """Test that the mask lines up with the input points."""
        points = np.array([[5, 7], [2, 5], [6, 8]])
        mask = cone_mask(ORIGIN, AIM_EAST, points, 4, 45)
        assert mask.tolist() == [True, False, True]

    def test_empty_points(self):
        """Test that no candidates give an empty mask."""
        assert cone_mask(ORIGIN, AIM_EAST, np.zeros((0, 2)), 4, 45).size == 0

    def test_full_circle(self):
        """Test that a 360 degree cone only checks distance."""
        assert is_position_in_cone(ORIGIN, AIM_EAST, Vector2(2, 5), 4, 360)
        assert not is_position_in_cone(ORIGIN, AIM_EAST, Vector2(5, 11), 4, 360)

    def test_no_aim_faces_north(self):
        """Test that aiming at the origin opens the cone northward."""
        assert is_position_in_cone(ORIGIN, ORIGIN, Vector2(3, 5), 4, 90)
        assert is_position_in_cone(ORIGIN, ORIGIN, Vector2(3, 6), 4, 90)
        assert not is_position_in_cone(ORIGIN, ORIGIN, Vector2(3, 7), 4, 90)
        assert not is_position_in_cone(ORIGIN, ORIGIN, Vector2(7, 5), 4, 90)


class TestFindConeTargets:
    """Test secondary target selection."""

    @pytest.fixture
    def line_up(self):
        attacker = make_combatant("Bulbasaur", Team.PLAYER, position=(5, 5))
        primary = make_combatant("Primary", Team.ENEMY, position=(5, 9))
        flanker = make_combatant("Flanker", Team.ENEMY, position=(6, 8))
        bystander = make_combatant("Bystander", Team.ENEMY, position=(2, 5))
        return attacker, primary, flanker, bystander

    def test_finds_secondary_targets(self, line_up):
        """Test that only combatants inside the cone are returned."""
        attacker, primary, flanker, bystander = line_up
        targets = find_cone_targets(attacker, primary, get_move("razor-leaf"), line_up)
        assert targets == [flanker]

    def test_excludes_defeated(self, line_up):
        """Test that fallen combatants are not caught."""
        attacker, primary, flanker, _ = line_up
        flanker.health.take_damage(flanker.hp_current)
        assert find_cone_targets(attacker, primary, get_move("razor-leaf"), line_up) == []

    def test_non_cone_move(self, line_up):
        """Test that single-target moves have no secondary targets."""
        attacker, primary, _, _ = line_up
        assert find_cone_targets(attacker, primary, get_move("tackle"), line_up) == []

    def test_allies_can_be_caught(self, line_up):
        """Test that the cone does not discriminate between teams."""
        attacker, primary, _, _ = line_up
        ally = make_combatant("Ally", Team.PLAYER, position=(5, 7))
        targets = find_cone_targets(attacker, primary, get_move("razor-leaf"), [attacker, primary, ally])
        assert targets == [ally]
