#!/usr/bin/env python3

import argparse
import asyncio

from creature_combat.core.data import load_combat_rules
from creature_combat.game import BattleSession
from creature_combat.game.entities import load_roster
from creature_combat.game.managers import LogLevel


async def run_demo(seed: int, rounds: int, roster_path, rules_path, debug: bool) -> None:
    rules = load_combat_rules(rules_path)
    session = BattleSession(rules=rules, seed=seed, echo=print, enable_debug_logging=debug)
    if debug:
        session.log_manager.set_log_level(LogLevel.DEBUG)

    for team in load_roster(roster_path).values():
        session.add_team(team)

    winner = await session.run_battle(max_rounds=rounds)
    session.flush_events()

    print()
    print("=== Final standings ===")
    for combatant in session.combatants.values():
        state = "defeated" if combatant.is_defeated else f"{combatant.hp_current}/{combatant.hp_max} HP"
        print(f"{combatant.team.name:<7} {combatant.name:<12} {state}")
    print(f"Winner: {winner.name if winner else 'none'}")


def main():
    parser = argparse.ArgumentParser(description="Run a seeded demo creature battle")
    parser.add_argument("--seed", type=int, default=7, help="Seed for the battle's dice")
    parser.add_argument("--rounds", type=int, default=20, help="Maximum number of rounds")
    parser.add_argument("--roster", default=None, help="Roster YAML file (defaults to the demo roster)")
    parser.add_argument("--rules", default=None, help="Combat rules YAML file")
    parser.add_argument("--debug", action="store_true", help="Show dice and debug output")
    args = parser.parse_args()

    try:
        asyncio.run(run_demo(args.seed, args.rounds, args.roster, args.rules, args.debug))
    except KeyboardInterrupt:
        print("\n\nBattle interrupted by user")


if __name__ == "__main__":
    main()
