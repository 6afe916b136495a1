"""
Unit tests for luck token rerolls.
"""
import pytest

from creature_combat.game.combat.luck_tokens import (
    should_use_luck_token, try_luck_reroll, use_luck_token,
)
from tests.test_utils import make_combatant, make_roll


class TestShouldUseLuckToken:
    """Test the fixed spending policy."""

    def test_no_tokens(self, dice, rng):
        """Test that an empty pool never spends."""
        combatant = make_combatant()
        combatant.luck.spend()
        assert not should_use_luck_token(combatant, make_roll(1, 1, 1, 1), dice)

    def test_positive_roll_is_kept(self, dice, rng):
        """Test that a positive roll is never rerolled."""
        assert not should_use_luck_token(make_combatant(), make_roll(5), dice)
        assert rng.randoms_drawn == []

    def test_terrible_roll_always_spends(self, dice, rng):
        """Test that three or more net failures always spend a token."""
        assert should_use_luck_token(make_combatant(), make_roll(1, 1, 1), dice)
        assert rng.randoms_drawn == []

    @pytest.mark.parametrize("faces,draw,expected", [
        ((3,), 0.2, True),
        ((3,), 0.3, False),
        ((1,), 0.35, True),
        ((1,), 0.45, False),
        ((1, 1), 0.45, True),
        ((1, 1), 0.55, False),
    ])
    def test_probabilistic_bands(self, dice, rng, faces, draw, expected):
        """Test the 25% / 40% / 50% bands for nets of 0, -1 and -2."""
        rng.push_randoms(draw)
        assert should_use_luck_token(make_combatant(), make_roll(*faces), dice) == expected

    def test_critical_situation(self, dice, rng):
        """Test that a looming critical raises the chance to 75%."""
        rng.push_randoms(0.7)
        assert should_use_luck_token(make_combatant(), make_roll(3), dice, critical_situation=True)


class TestUseLuckToken:
    """Test spending a token."""

    def test_keeps_better_reroll(self, dice, rng):
        """Test that an improved reroll replaces the original."""
        combatant = make_combatant()
        original = make_roll(1, 1)
        rng.push_faces(5, 5)

        result = use_luck_token(combatant, original, 2, dice)

        assert result.reroll.net_successes == 2
        assert result.kept is result.reroll
        assert result.improved
        assert combatant.luck_tokens == 0

    def test_keeps_original_when_reroll_is_worse(self, dice, rng):
        """Test that a worse reroll is discarded."""
        original = make_roll(3, 1)
        rng.push_faces(1, 1)

        result = use_luck_token(make_combatant(), original, 2, dice)

        assert result.kept is original
        assert not result.improved

    def test_no_tokens_left(self, dice):
        """Test that nothing happens without tokens."""
        combatant = make_combatant()
        combatant.luck.spend()
        assert use_luck_token(combatant, make_roll(1, 1), 2, dice) is None


class TestTryLuckReroll:
    """Test the combined policy and reroll."""

    def test_positive_roll_untouched(self, dice):
        """Test that good rolls are left alone."""
        combatant = make_combatant()
        assert try_luck_reroll(combatant, make_roll(5, 5), 2, dice) is None
        assert combatant.luck_tokens == 1

    def test_policy_declines(self, dice, rng):
        """Test that a declined policy check keeps the token."""
        combatant = make_combatant()
        rng.push_randoms(0.9)
        assert try_luck_reroll(combatant, make_roll(3, 3), 2, dice) is None
        assert combatant.luck_tokens == 1

    def test_rerolls_without_penalty(self, dice, rng):
        """Test that the reroll is a plain pool roll."""
        combatant = make_combatant()
        rng.push_faces(5, 3, 3)
        result = try_luck_reroll(combatant, make_roll(1, 1, 1), 3, dice)
        assert result.kept.net_successes == 1
        assert result.kept.penalty == 0
