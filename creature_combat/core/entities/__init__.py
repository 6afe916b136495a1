"""Entity/component foundation for battle participants."""

from .components import (
    Component, Entity, ComponentError, MissingComponentError, DuplicateComponentError,
)

__all__ = [
    "Component",
    "Entity",
    "ComponentError",
    "MissingComponentError",
    "DuplicateComponentError",
]
