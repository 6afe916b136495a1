"""
Unit tests for the StatusEffectManager.
"""
import pytest

from creature_combat.core.data import StatName, StatusEffectId, Team, WeatherKind
from creature_combat.core.events import EventType
from tests.test_utils import make_combatant


@pytest.fixture
def victim(duel, defender):
    return defender


class TestApplyStatus:
    """Test inflicting statuses."""

    def test_apply(self, duel, attacker, victim):
        """Test a plain infliction."""
        assert duel.status_effects.apply_status(victim, StatusEffectId.BURNED, source=attacker)
        assert victim.has_status(StatusEffectId.BURNED)
        assert victim.status.get(StatusEffectId.BURNED).source is attacker

    def test_duplicate_is_rejected(self, duel, victim):
        """Test that an active status cannot be applied twice."""
        duel.status_effects.apply_status(victim, StatusEffectId.PARALYZED)
        assert not duel.status_effects.apply_status(victim, StatusEffectId.PARALYZED)

    def test_badly_poisoned_replaces_poison(self, duel, victim):
        """Test that toxic upgrades ordinary poison."""
        duel.status_effects.apply_status(victim, StatusEffectId.POISONED)
        assert duel.status_effects.apply_status(victim, StatusEffectId.BADLY_POISONED)
        assert victim.has_status(StatusEffectId.BADLY_POISONED)
        assert not victim.has_status(StatusEffectId.POISONED)

    def test_poison_does_not_downgrade(self, duel, victim):
        """Test that ordinary poison cannot land on a badly poisoned target."""
        duel.status_effects.apply_status(victim, StatusEffectId.BADLY_POISONED)
        assert not duel.status_effects.apply_status(victim, StatusEffectId.POISONED)

    def test_snared_gets_default_duration(self, duel, victim):
        """Test the three turn default for snares."""
        duel.status_effects.apply_status(victim, StatusEffectId.SNARED)
        assert victim.status.get(StatusEffectId.SNARED).duration == 3

    def test_defeated_targets_are_skipped(self, duel, victim):
        """Test that statuses do not land on the fallen."""
        victim.health.take_damage(40)
        assert not duel.status_effects.apply_status(victim, StatusEffectId.BURNED)

    def test_inflicted_event(self, duel, victim):
        """Test that a StatusInflicted event goes out."""
        received = []
        duel.event_manager.subscribe(EventType.STATUS_INFLICTED, received.append)
        duel.status_effects.apply_status(victim, StatusEffectId.CURSED)
        duel.flush_events()
        assert [event.effect_id for event in received] == [StatusEffectId.CURSED]


class TestImmunities:
    """Test type, ability and weather immunities."""

    @pytest.mark.parametrize("types,ability,effect_id", [
        (("steel",), None, StatusEffectId.POISONED),
        (("poison",), None, StatusEffectId.BADLY_POISONED),
        (("normal",), "immunity", StatusEffectId.POISONED),
        (("fire",), None, StatusEffectId.BURNED),
        (("normal",), "insomnia", StatusEffectId.ASLEEP),
        (("electric",), None, StatusEffectId.PARALYZED),
        (("normal",), "limber", StatusEffectId.PARALYZED),
        (("ice",), None, StatusEffectId.FROZEN),
        (("grass",), None, StatusEffectId.SEEDED),
        (("normal",), "own-tempo", StatusEffectId.CONFUSED),
    ])
    def test_immune(self, session, types, ability, effect_id):
        """Test that immune combatants shrug the status off."""
        target = make_combatant("Immune", Team.ENEMY, types=types, ability=ability)
        assert session.status_effects.check_immunity(target, effect_id) is not None
        assert not session.status_effects.apply_status(target, effect_id)

    def test_no_freezing_in_sun(self, session):
        """Test that harsh sunlight prevents freezing."""
        session.weather.set_weather(WeatherKind.SUN, 5)
        target = make_combatant("Target", Team.ENEMY)
        assert not session.status_effects.apply_status(target, StatusEffectId.FROZEN)

    def test_not_immune(self, session):
        """Test that ordinary combatants have no immunity."""
        target = make_combatant("Target", Team.ENEMY)
        assert session.status_effects.check_immunity(target, StatusEffectId.BURNED) is None


class TestTurnStart:
    """Test start-of-turn checks."""

    def test_no_status(self, duel, rng, victim):
        """Test that healthy combatants act without drawing."""
        assert not duel.status_effects.process_turn_start(victim)
        assert rng.randoms_drawn == []

    def test_paralysis_skip(self, duel, rng, victim):
        """Test that paralysis costs the turn 30% of the time."""
        victim.status.add(StatusEffectId.PARALYZED)
        rng.push_randoms(0.1)
        assert duel.status_effects.process_turn_start(victim)

    def test_paralysis_no_skip(self, duel, rng, victim):
        """Test that paralysis usually lets the combatant act."""
        victim.status.add(StatusEffectId.PARALYZED)
        rng.push_randoms(0.5)
        assert not duel.status_effects.process_turn_start(victim)

    def test_stays_asleep(self, duel, rng, victim):
        """Test that a sleeper usually stays asleep."""
        victim.status.add(StatusEffectId.ASLEEP)
        rng.push_randoms(0.5)
        assert duel.status_effects.process_turn_start(victim)
        assert victim.has_status(StatusEffectId.ASLEEP)

    def test_wakes_up(self, duel, rng, victim):
        """Test the 20% wake chance."""
        victim.status.add(StatusEffectId.ASLEEP)
        rng.push_randoms(0.1)
        assert not duel.status_effects.process_turn_start(victim)
        assert not victim.has_status(StatusEffectId.ASLEEP)

    def test_thaw_by_chance(self, duel, rng, victim):
        """Test the 10% thaw chance."""
        victim.status.add(StatusEffectId.FROZEN)
        rng.push_randoms(0.05)
        assert not duel.status_effects.process_turn_start(victim)
        assert not victim.has_status(StatusEffectId.FROZEN)

    def test_thaw_after_three_turns(self, duel, rng, victim):
        """Test that a freeze never lasts beyond three turns."""
        victim.status.add(StatusEffectId.FROZEN)

        assert duel.status_effects.process_turn_start(victim)
        assert duel.status_effects.process_turn_start(victim)
        assert not duel.status_effects.process_turn_start(victim)

        assert not victim.has_status(StatusEffectId.FROZEN)
        assert len(rng.randoms_drawn) == 3

    def test_confusion_self_hit(self, duel, rng, victim):
        """Test that a confused combatant may hurt itself for an eighth of its HP."""
        victim.status.add(StatusEffectId.CONFUSED)
        rng.push_randoms(0.1)

        assert duel.status_effects.process_turn_start(victim)
        assert victim.hp_current == 35

    def test_confusion_no_self_hit(self, duel, rng, victim):
        """Test that confusion usually lets the combatant act."""
        victim.status.add(StatusEffectId.CONFUSED)
        rng.push_randoms(0.5)

        assert not duel.status_effects.process_turn_start(victim)
        assert victim.hp_current == 40


class TestTurnEnd:
    """Test end-of-turn damage ticks and expiries."""

    @pytest.mark.parametrize("effect_id,expected", [
        (StatusEffectId.POISONED, 2),
        (StatusEffectId.BURNED, 5),
        (StatusEffectId.CURSED, 10),
        (StatusEffectId.HELD, 2),
    ])
    def test_damage_ticks(self, duel, victim, effect_id, expected):
        """Test the damage each condition deals to a 40 HP combatant."""
        victim.status.add(effect_id)
        assert duel.status_effects.process_turn_end(victim) == expected
        assert victim.hp_current == 40 - expected

    def test_badly_poisoned_escalates(self, duel, victim):
        """Test that toxic damage grows each turn."""
        victim.status.add(StatusEffectId.BADLY_POISONED)
        ticks = [duel.status_effects.process_turn_end(victim) for _ in range(3)]
        assert ticks == [2, 5, 7]
        assert victim.hp_current == 26

    def test_curse_counts_damage_dealt(self, duel, victim):
        """Test that a curse tick on a nearly fainted combatant counts only the HP it took."""
        victim.health.take_damage(37)
        victim.status.add(StatusEffectId.CURSED)

        assert duel.status_effects.process_turn_end(victim) == 3
        assert victim.is_defeated

    def test_poison_heal_tick_deals_nothing(self, duel):
        """Test that a poison tick turned into healing adds no damage."""
        healer = make_combatant("Shroomish", Team.ENEMY, ability="poison-heal", position=(6, 5))
        duel.add_combatant(healer)
        healer.health.take_damage(10)
        healer.status.add(StatusEffectId.POISONED)

        assert duel.status_effects.process_turn_end(healer) == 0
        assert healer.hp_current == 32

    def test_leech_seed_heals_seeder(self, duel, attacker, victim):
        """Test that leech seed drains into the combatant who planted it."""
        attacker.health.take_damage(10)
        victim.status.add(StatusEffectId.SEEDED, source=attacker)

        assert duel.status_effects.process_turn_end(victim) == 2
        assert attacker.hp_current == 32

    def test_snare_expires(self, duel, victim):
        """Test that snares wear off after their duration."""
        duel.status_effects.apply_status(victim, StatusEffectId.SNARED)
        duel.status_effects.process_turn_end(victim)
        duel.status_effects.process_turn_end(victim)
        assert victim.has_status(StatusEffectId.SNARED)
        duel.status_effects.process_turn_end(victim)
        assert not victim.has_status(StatusEffectId.SNARED)

    def test_confusion_recovery(self, duel, rng, victim):
        """Test the 30% chance to snap out of confusion."""
        victim.status.add(StatusEffectId.CONFUSED)
        rng.push_randoms(0.2)
        duel.status_effects.process_turn_end(victim)
        assert not victim.has_status(StatusEffectId.CONFUSED)

    def test_status_damage_can_defeat(self, duel, victim):
        """Test that a lethal tick defeats the combatant without a reward."""
        victim.health.take_damage(38)
        victim.status.add(StatusEffectId.BURNED)

        duel.status_effects.process_turn_end(victim)

        assert victim.is_defeated
        assert victim not in duel.turn_order

    def test_poison_heal(self, duel):
        """Test that poison-heal restores HP instead of losing it."""
        shroom = make_combatant("Shroomish", Team.ENEMY, ability="poison-heal", position=(7, 7))
        duel.add_combatant(shroom)
        shroom.health.take_damage(10)
        shroom.status.add(StatusEffectId.POISONED)

        assert duel.status_effects.process_turn_end(shroom) == 0
        assert shroom.hp_current == 32


class TestStatChanges:
    """Test stat stage changes and their ability interactions."""

    def test_raise(self, duel, attacker):
        """Test a plain stage change."""
        assert duel.status_effects.apply_stat_change(attacker, StatName.ATTACK, 2, source=attacker) == 2
        assert attacker.stats.get_stage(StatName.ATTACK) == 2

    def test_contrary(self, duel):
        """Test that contrary flips the direction."""
        target = make_combatant("Shuckle", Team.ENEMY, ability="contrary", position=(7, 7))
        duel.add_combatant(target)
        assert duel.status_effects.apply_stat_change(target, StatName.DEFENSE, 2, source=target) == -2

    def test_clear_body_blocks_drops(self, duel, attacker):
        """Test that clear-body blocks drops from others."""
        target = make_combatant("Metang", Team.ENEMY, ability="clear-body", position=(7, 7))
        duel.add_combatant(target)
        assert duel.status_effects.apply_stat_change(target, StatName.ATTACK, -1, source=attacker) == 0
        assert target.stats.get_stage(StatName.ATTACK) == 0

    def test_clear_body_allows_self_drops(self, duel):
        """Test that clear-body does not block self-inflicted drops."""
        target = make_combatant("Metang", Team.ENEMY, ability="clear-body", position=(7, 7))
        duel.add_combatant(target)
        assert duel.status_effects.apply_stat_change(target, StatName.ATTACK, -1, source=target) == -1

    def test_capped(self, duel, attacker):
        """Test that a maxed stage cannot rise further."""
        attacker.change_stage(StatName.ATTACK, 6)
        assert duel.status_effects.apply_stat_change(attacker, StatName.ATTACK, 1) == 0

    def test_stat_changed_event(self, duel, attacker):
        """Test that a StatChanged event reports the new stage."""
        received = []
        duel.event_manager.subscribe(EventType.STAT_CHANGED, received.append)

        duel.status_effects.apply_stat_change(attacker, StatName.INITIATIVE, -1)
        duel.flush_events()

        assert len(received) == 1
        assert received[0].delta == -1
        assert received[0].new_stage == -1
