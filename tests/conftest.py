"""
Basic test fixtures for the creature combat test suite.

Provides sessions wired to a scripted random generator so that tests can
dictate every die, plus a few ready-made combatants.
"""

import sys
import os
import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from creature_combat.core.data import CombatRules, Team
from creature_combat.core.events import EventManager
from creature_combat.game import BattleSession
from creature_combat.game.combat.dice import DiceRoller
from tests.test_utils import ScriptedRng, make_combatant


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager(enable_debug_logging=False)


@pytest.fixture
def rules():
    """Default combat rules."""
    return CombatRules()


@pytest.fixture
def rng():
    """Scripted random generator with empty queues."""
    return ScriptedRng()


@pytest.fixture
def dice(rules, rng):
    """Dice roller driven by the scripted generator."""
    return DiceRoller(rules, rng=rng)


@pytest.fixture
def session(rules, rng):
    """Battle session whose dice come from the scripted generator."""
    return BattleSession(rules=rules, rng=rng)


@pytest.fixture
def seeded_session():
    """Battle session with a real, seeded numpy generator."""
    return BattleSession(seed=1234)


@pytest.fixture
def attacker():
    """Player combatant with a melee move, standing at (5, 5)."""
    return make_combatant("Attacker", Team.PLAYER, position=(5, 5))


@pytest.fixture
def defender():
    """Enemy combatant adjacent to the attacker fixture."""
    return make_combatant("Defender", Team.ENEMY, position=(5, 6), base_stat_total=500)


@pytest.fixture
def duel(session, attacker, defender):
    """Session with the attacker and defender fixtures on the field."""
    session.add_combatant(attacker)
    session.add_combatant(defender)
    session.flush_events()
    return session
