"""
Core module - components, events, seeded randomness.
"""

from crawler_engine.core.component import (
    Component,
    register_component,
    get_component_type,
    get_all_component_types,
    component_from_record,
)
from crawler_engine.core.events import EventBus, Event, EventHandler
from crawler_engine.core.rng import derive_seed, make_rng, weighted_choice

__all__ = [
    # Components
    "Component",
    "register_component",
    "get_component_type",
    "get_all_component_types",
    "component_from_record",
    # Events
    "EventBus",
    "Event",
    "EventHandler",
    # Randomness
    "derive_seed",
    "make_rng",
    "weighted_choice",
]
