"""
Combat rule configuration.

Tunable constants for dice, criticals, forcing and timing are kept in a
dataclass whose defaults ship in ``combat_rules.yaml`` next to this module.
A different rules file can be supplied per battle session.
"""
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError


DEFAULT_RULES_PATH = Path(__file__).parent / "combat_rules.yaml"


@dataclass(frozen=True)
class CombatRules:
    """Rule constants for a battle session."""
    dice_sides: int = 6
    success_threshold: int = 5
    failure_threshold: int = 1
    default_crit_threshold: int = 4
    min_crit_threshold: int = 2
    max_forced_rerolls: int = 20
    attack_completion_timeout: float = 5.0
    luck_token_base_stat_total: int = 500
    opportunistic_bonus_dice: int = 2
    sandstorm_summon_count: int = 3
    sandstorm_summon_duration: int = 3
    brawler_protection_charges: int = 2
    thief_steal_chance: float = 0.5
    thief_steal_hp_fraction: float = 0.25

    def __post_init__(self):
        if self.dice_sides < 2:
            raise ConfigurationError("dice_sides", self.dice_sides, "must be at least 2")
        if not 1 <= self.success_threshold <= self.dice_sides:
            raise ConfigurationError(
                "success_threshold", self.success_threshold, "must be a face of the die"
            )
        if not 0 <= self.failure_threshold < self.success_threshold:
            raise ConfigurationError(
                "failure_threshold", self.failure_threshold,
                "must be below the success threshold"
            )
        if self.min_crit_threshold < 1 or self.default_crit_threshold < self.min_crit_threshold:
            raise ConfigurationError(
                "default_crit_threshold", self.default_crit_threshold,
                "must be at least min_crit_threshold"
            )
        if self.max_forced_rerolls < 1:
            raise ConfigurationError("max_forced_rerolls", self.max_forced_rerolls, "must be positive")
        if self.attack_completion_timeout <= 0:
            raise ConfigurationError(
                "attack_completion_timeout", self.attack_completion_timeout, "must be positive"
            )
        if self.brawler_protection_charges < 0:
            raise ConfigurationError(
                "brawler_protection_charges", self.brawler_protection_charges, "must not be negative"
            )
        for name in ("thief_steal_chance", "thief_steal_hp_fraction"):
            if not 0 <= getattr(self, name) <= 1:
                raise ConfigurationError(name, getattr(self, name), "must be between 0 and 1")

    def with_overrides(self, **overrides: Any) -> "CombatRules":
        """Return a copy of these rules with some values replaced."""
        return replace(self, **overrides)


def load_combat_rules(config_path: Optional[str] = None) -> CombatRules:
    """
    Load combat rules from a YAML file.

    Missing or unreadable files fall back to the built-in defaults. Unknown
    keys are reported and ignored.

    Args:
        config_path: Path to a rules file, defaults to the packaged rules

    Returns:
        CombatRules: The loaded rules

    Raises:
        ConfigurationError: If the file holds an invalid value
    """
    config_file = Path(config_path) if config_path else DEFAULT_RULES_PATH
    if not config_file.is_absolute():
        config_file = Path(os.getcwd()) / config_file

    if not config_file.exists():
        print(f"Warning: Combat rules file not found: {config_file}")
        return CombatRules()

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        print(f"Error loading combat rules: {e}")
        return CombatRules()

    rules_section = raw.get('rules', raw)
    if not isinstance(rules_section, dict):
        raise ConfigurationError('rules', rules_section, "expected a mapping")

    defaults = CombatRules()
    known = {f.name for f in fields(CombatRules)}
    values: dict[str, Any] = {}
    for key, value in rules_section.items():
        if key not in known:
            print(f"Warning: Unknown combat rule '{key}' in config")
            continue
        values[key] = _coerce(key, value, getattr(defaults, key))

    return CombatRules(**values)


def _coerce(key: str, value: Any, default: Any) -> Any:
    """Convert a raw YAML value to the type of the rule's default."""
    if isinstance(value, bool):
        raise ConfigurationError(key, value, "expected a number")
    try:
        if isinstance(default, float):
            return float(value)
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(key, value, "expected a number") from None
