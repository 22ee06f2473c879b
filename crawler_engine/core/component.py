"""
Component base class for data components.

Components are small Pydantic models holding the state of a combatant
(health matrix, gauge, position, inventory). Using Pydantic gives:
- Automatic validation
- JSON serialization for save files
- Type hints
- Default values

Components are registered by type name so that save data can be
decoded back into the right class.

Usage:
    @register_component
    class SpellGauge(Component):
        current: int = 0
        maximum: int = 10
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict


class Component(BaseModel):
    """
    Base class for all components.

    Components may carry small helpers that keep their own fields
    consistent (clamping, bounds), but game rules belong in systems.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra='forbid',
    )

    # Class variable: component type name (used for serialization)
    _type_name: ClassVar[str] = ""

    @classmethod
    def get_type_name(cls) -> str:
        """Get the component type name for serialization."""
        return cls._type_name or cls.__name__

    def clone(self) -> Component:
        """Create a deep copy of this component."""
        return self.model_copy(deep=True)

    def to_record(self) -> dict[str, Any]:
        """Serialize as a tagged record: {"type": name, "data": {...}}."""
        return {
            "type": self.get_type_name(),
            "data": self.model_dump(mode="json"),
        }


# Registry of component types for deserialization
_component_registry: dict[str, type[Component]] = {}


def register_component(cls: type[Component]) -> type[Component]:
    """
    Decorator to register a component type.

    Usage:
        @register_component
        class GridPosition(Component):
            x: int = 0
            y: int = 0
    """
    type_name = cls.get_type_name()
    _component_registry[type_name] = cls
    return cls


def get_component_type(type_name: str) -> type[Component] | None:
    """Get component class by type name."""
    return _component_registry.get(type_name)


def get_all_component_types() -> dict[str, type[Component]]:
    """Get all registered component types."""
    return _component_registry.copy()


def component_from_record(record: dict[str, Any]) -> Component:
    """
    Rebuild a component from a tagged record.

    Raises:
        KeyError: if the record names an unregistered type
        pydantic.ValidationError: if the data does not fit the type
    """
    type_name = record["type"]
    cls = get_component_type(type_name)
    if cls is None:
        raise KeyError(f"Unknown component type: {type_name}")
    return cls.model_validate(record["data"])
