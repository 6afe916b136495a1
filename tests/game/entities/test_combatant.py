"""
Unit tests for the Combatant facade, the factory functions and roster loading.
"""
import pytest

from creature_combat.core.data import (
    AttackerStrategy, ForcingPolicy, StatName, StatusEffectId, Team, TrainerClass, Vector2,
)
from creature_combat.game.entities import (
    create_combatant, create_combatant_from_data, get_move, load_roster,
)
from tests.test_utils import make_combatant


class TestCombatant:
    """Test the properties exposed by the facade."""

    def test_properties(self):
        """Test the frequently read properties."""
        combatant = make_combatant("Geodude", Team.PLAYER, hp=40, types=("rock", "ground"),
                                   ability="sand-force", position=(3, 4))
        assert combatant.name == "Geodude"
        assert combatant.team == Team.PLAYER
        assert combatant.hp_current == combatant.hp_max == 40
        assert combatant.is_alive
        assert not combatant.is_defeated
        assert combatant.position == Vector2(3, 4)
        assert combatant.has_any_type("water", "rock")
        assert combatant.has_ability("sand-force")
        assert [slot.move.name for slot in combatant.moves] == ["tackle"]

    def test_position_setter(self):
        """Test moving a combatant."""
        combatant = make_combatant()
        combatant.position = Vector2(7, 2)
        assert combatant.placement.position == Vector2(7, 2)

    def test_enemy_check(self):
        """Test team-based hostility."""
        player = make_combatant(team=Team.PLAYER)
        teammate = make_combatant(team=Team.PLAYER)
        enemy = make_combatant(team=Team.ENEMY)
        assert player.is_enemy_of(enemy)
        assert not player.is_enemy_of(teammate)

    def test_status_and_stage_shortcuts(self):
        """Test the status and stat stage helpers."""
        combatant = make_combatant(attack=20)
        combatant.status.add(StatusEffectId.BURNED)
        assert combatant.has_status(StatusEffectId.BURNED)
        assert combatant.change_stage(StatName.ATTACK, 2) == 2
        assert combatant.stat(StatName.ATTACK) == 40

    def test_luck_tokens_follow_base_stat_total(self):
        """Test that the token cap is set at creation."""
        combatant = make_combatant(base_stat_total=200)
        assert combatant.luck_tokens == combatant.max_luck_tokens == 6


class TestCreateCombatant:
    """Test the factory functions."""

    def test_defaults(self):
        """Test a combatant made with minimal arguments."""
        combatant = create_combatant("Blob", Team.NEUTRAL, hp=10)
        assert combatant.position == Vector2(0, 0)
        assert combatant.identity.forcing_policy == ForcingPolicy.ALWAYS
        assert combatant.identity.strategy == AttackerStrategy.STANDARD
        assert combatant.stat(StatName.EVASION) == 1
        assert combatant.moves == []

    def test_fixed_id(self):
        """Test that a fixed id is kept."""
        combatant = create_combatant("Blob", Team.NEUTRAL, hp=10, combatant_id="blob-1")
        assert combatant.combatant_id == "blob-1"

    def test_from_data(self):
        """Test building a combatant from a roster entry."""
        combatant = create_combatant_from_data({
            "name": "Pikachu",
            "hp": 35,
            "types": ["electric"],
            "ability": "static",
            "base_stat_total": 320,
            "strategy": "precision",
            "forcing_policy": "dynamic",
            "trainer_class": "ace-trainer",
            "stats": {"special-attack": 20, "accuracy": 5},
            "moves": ["thunder-shock", "thunder"],
            "position": [8, 3],
        }, Team.PLAYER)

        assert combatant.hp_max == 35
        assert combatant.types == ("electric",)
        assert combatant.stat(StatName.SPECIAL_ATTACK) == 20
        assert combatant.stat(StatName.ACCURACY) == 5
        assert combatant.identity.strategy == AttackerStrategy.PRECISION
        assert combatant.identity.forcing_policy == ForcingPolicy.DYNAMIC
        assert combatant.identity.trainer_class == TrainerClass.ACE_TRAINER
        assert combatant.position == Vector2(8, 3)
        assert combatant.moves[0].move is get_move("thunder-shock")
        assert combatant.max_luck_tokens == 4

    def test_from_data_unknown_stat_raises(self):
        """Test that misspelled stats are not silently dropped."""
        with pytest.raises(ValueError):
            create_combatant_from_data({"name": "X", "hp": 5, "stats": {"speed": 3}}, Team.ENEMY)


class TestLoadRoster:
    """Test loading teams from YAML."""

    def test_demo_roster(self):
        """Test the packaged demo roster."""
        roster = load_roster()
        assert set(roster) == {Team.PLAYER, Team.ENEMY}
        assert [c.name for c in roster[Team.PLAYER]] == ["Pikachu", "Geodude", "Bulbasaur"]
        assert [c.name for c in roster[Team.ENEMY]] == ["Charmander", "Squirtle", "Sandshrew"]
        assert all(c.team == Team.ENEMY for c in roster[Team.ENEMY])

    def test_custom_roster(self, tmp_path):
        """Test loading a roster file from disk."""
        path = tmp_path / "roster.yaml"
        path.write_text(
            "teams:\n"
            "  ally:\n"
            "    - name: Eevee\n"
            "      hp: 30\n"
            "      moves: [tackle]\n"
        )
        roster = load_roster(str(path))
        assert [c.name for c in roster[Team.ALLY]] == ["Eevee"]

    def test_missing_roster_raises(self, tmp_path):
        """Test that a missing file is reported."""
        with pytest.raises(FileNotFoundError):
            load_roster(str(tmp_path / "absent.yaml"))
