"""
Unit tests for the type effectiveness chart and stat lookups.
"""
import pytest

from creature_combat.core.data import (
    MoveCategory, StatName, TYPE_ORDER, effectiveness_description,
    get_type_effectiveness, stats_for_category,
)
from creature_combat.core.data.type_chart import TYPE_CHART


class TestTypeChart:
    """Test the effectiveness matrix."""

    def test_chart_shape(self):
        """Test that every type has a row and a column."""
        assert len(TYPE_ORDER) == 18
        assert TYPE_CHART.shape == (18, 18)

    def test_chart_is_read_only(self):
        """Test that the shared chart cannot be modified."""
        with pytest.raises(ValueError):
            TYPE_CHART[0, 0] = 2.0

    @pytest.mark.parametrize("move_type,target_types,expected", [
        ("water", ["fire"], 2.0),
        ("fire", ["water"], 0.5),
        ("normal", ["ghost"], 0.0),
        ("electric", ["ground"], 0.0),
        ("normal", ["normal"], 1.0),
        ("water", ["rock", "ground"], 4.0),
        ("grass", ["fire", "flying"], 0.25),
        ("fire", ["grass", "water"], 1.0),
    ])
    def test_matchups(self, move_type, target_types, expected):
        """Test single and dual type matchups."""
        assert get_type_effectiveness(move_type, target_types) == expected

    def test_case_insensitive(self):
        """Test that type names ignore case."""
        assert get_type_effectiveness("WATER", ["Fire"]) == 2.0

    def test_unknown_types_are_neutral(self):
        """Test that unknown or missing types count as neutral."""
        assert get_type_effectiveness("shadow", ["fire"]) == 1.0
        assert get_type_effectiveness("water", ["shadow"]) == 1.0
        assert get_type_effectiveness(None, ["fire"]) == 1.0
        assert get_type_effectiveness("water", []) == 1.0


class TestDescriptions:
    """Test effectiveness tags and category stat pairs."""

    def test_effectiveness_description(self):
        """Test the narration tag for each band."""
        assert effectiveness_description(0) == "has no effect"
        assert effectiveness_description(0.5) == "is not very effective"
        assert effectiveness_description(2) == "is super effective"
        assert effectiveness_description(1) == "is effective"

    def test_stats_for_category(self):
        """Test that physical moves use attack/defense and the rest use special stats."""
        assert stats_for_category(MoveCategory.PHYSICAL) == (StatName.ATTACK, StatName.DEFENSE)
        assert stats_for_category(MoveCategory.SPECIAL) == (
            StatName.SPECIAL_ATTACK, StatName.SPECIAL_DEFENSE
        )
        assert stats_for_category(MoveCategory.STATUS) == (
            StatName.SPECIAL_ATTACK, StatName.SPECIAL_DEFENSE
        )
