"""Combat resolution systems.

This package contains the stages of the attack pipeline:
- dice.py / luck_tokens.py: Dice pools and luck token rerolls
- hit_resolution.py: Initial roll and the forcing loop
- dodge_resolution.py: Opposed dodge rolls
- damage_calculator.py: Layered damage pipeline
- effects.py / status_effects.py: Damage application, healing and statuses
- defeat_resolver.py: Defeat handling and finishing-blow rewards
- targeting.py: Cone area targeting
- attack_orchestrator.py: Sequencing and single-flight attack sessions
"""

from .attack_orchestrator import AttackOrchestrator, AttackOutcome, AttackSession, TargetResult
from .damage_calculator import DamageCalculator, DamageResult, scale_damage
from .defeat_resolver import DefeatResolver
from .dice import AttackRoll, DamageRoll, DiceRoller
from .dodge_resolution import DodgeResolver, DodgeResult
from .effects import EffectApplicator
from .hit_resolution import HitResolver, HitResult
from .luck_tokens import LuckReroll, should_use_luck_token, try_luck_reroll, use_luck_token
from .status_effects import StatusEffectManager
from .targeting import cone_mask, find_cone_targets, is_position_in_cone

__all__ = [
    "AttackOrchestrator",
    "AttackOutcome",
    "AttackSession",
    "TargetResult",
    "DamageCalculator",
    "DamageResult",
    "scale_damage",
    "DefeatResolver",
    "AttackRoll",
    "DamageRoll",
    "DiceRoller",
    "DodgeResolver",
    "DodgeResult",
    "EffectApplicator",
    "HitResolver",
    "HitResult",
    "LuckReroll",
    "should_use_luck_token",
    "try_luck_reroll",
    "use_luck_token",
    "StatusEffectManager",
    "cone_mask",
    "find_cone_targets",
    "is_position_in_cone",
]
