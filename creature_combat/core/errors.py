"""Exception hierarchy for the combat engine.

Combat errors are raised inside the resolution pipeline and caught at the
attack orchestrator boundary, where they are converted into well-formed
attack outcomes. None of them are allowed to reach the turn loop.
"""

from typing import Optional


class CombatError(Exception):
    """Base exception for combat resolution errors."""
    pass


class InvalidTargetError(CombatError):
    """Raised when an attack target cannot be resolved."""

    def __init__(self, target_id: Optional[str], reason: str = "target not found"):
        super().__init__(f"Invalid target {target_id}: {reason}")
        self.target_id = target_id
        self.reason = reason


class NoValidMoveError(CombatError):
    """Raised when an attacker has no usable move in range."""

    def __init__(self, attacker_name: str, distance: Optional[int] = None):
        detail = f" at distance {distance}" if distance is not None else ""
        super().__init__(f"{attacker_name} has no usable move{detail}")
        self.attacker_name = attacker_name
        self.distance = distance


class LineOfSightBlockedError(CombatError):
    """Raised when a ranged attack has no line of sight to its target."""

    def __init__(self, attacker_name: str, target_name: str):
        super().__init__(f"{attacker_name} has no line of sight to {target_name}")
        self.attacker_name = attacker_name
        self.target_name = target_name


class PresentationError(CombatError):
    """Raised when a presentation hook fails while an attack is resolving."""

    def __init__(self, hook_name: str, cause: BaseException):
        super().__init__(f"Presentation hook {hook_name} failed: {cause}")
        self.hook_name = hook_name
        self.cause = cause


class ForcingLimitExceeded(CombatError):
    """Raised when the forcing loop hits its reroll cap."""

    def __init__(self, attacker_name: str, forced_count: int):
        super().__init__(
            f"{attacker_name} exceeded the forced reroll limit ({forced_count})"
        )
        self.attacker_name = attacker_name
        self.forced_count = forced_count


class ConfigurationError(CombatError):
    """Raised when combat rules or move templates contain invalid values."""

    def __init__(self, key: str, value: object, reason: str):
        super().__init__(f"Invalid configuration for '{key}' ({value!r}): {reason}")
        self.key = key
        self.value = value
        self.reason = reason
