"""Entity/component container for battle participants.

A combatant is an Entity whose state is split into focused components:
identity, health, stats, statuses, luck, moves and position. Components
are keyed by ComponentType, at most one of each per entity.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional, Type, TypeVar
import uuid

from ..data.game_enums import ComponentType
from ..errors import CombatError

C = TypeVar("C", bound="Component")


class Component(ABC):
    """One slice of a combatant's state, owned by a single entity."""

    def __init__(self, entity: "Entity"):
        self.entity = entity

    @abstractmethod
    def get_component_type(self) -> ComponentType:
        """Get the type identifier for this component."""
        pass


class Entity:
    """A battle participant's id plus its components.

    Args:
        entity_id: Stable id to use; a fresh uuid4 when omitted
    """

    def __init__(self, entity_id: Optional[str] = None):
        self.entity_id: str = entity_id or str(uuid.uuid4())
        self.components: dict[ComponentType, Component] = {}

    def add_component(self, component: Component) -> None:
        if component.entity is not self:
            raise ComponentError(
                f"Component {component.get_component_type().name} belongs to another entity"
            )
        component_type = component.get_component_type()
        if component_type in self.components:
            raise DuplicateComponentError(self.entity_id, component_type)
        self.components[component_type] = component

    def get_component(self, component_type: ComponentType) -> Optional[Component]:
        return self.components.get(component_type)

    def require_component(
        self, component_type: ComponentType, expected: Optional[Type[C]] = None
    ) -> C:
        """Get a component that every combatant is built with.

        Args:
            component_type: Slot to look up
            expected: Concrete class the slot must hold, checked when given

        Raises:
            MissingComponentError: If the slot is empty
            ComponentError: If the slot holds a different class
        """
        component = self.components.get(component_type)
        if component is None:
            raise MissingComponentError(self.entity_id, component_type)
        if expected is not None and not isinstance(component, expected):
            raise ComponentError(
                f"{component_type.name} on {self.entity_id} is a "
                f"{type(component).__name__}, not a {expected.__name__}"
            )
        return component  # type: ignore[return-value]

    def has_component(self, component_type: ComponentType) -> bool:
        return component_type in self.components

    def __iter__(self) -> Iterator[Component]:
        return iter(self.components.values())

    def __repr__(self) -> str:
        component_names = [ct.name for ct in self.components]
        return f"Entity({self.entity_id[:8]}, components={component_names})"


class ComponentError(CombatError):
    """A combatant was assembled or queried inconsistently."""


class MissingComponentError(ComponentError):
    def __init__(self, entity_id: str, component_type: ComponentType):
        super().__init__(f"Combatant {entity_id} has no {component_type.name} component")
        self.entity_id = entity_id
        self.component_type = component_type


class DuplicateComponentError(ComponentError):
    def __init__(self, entity_id: str, component_type: ComponentType):
        super().__init__(f"Combatant {entity_id} already has a {component_type.name} component")
        self.entity_id = entity_id
        self.component_type = component_type
