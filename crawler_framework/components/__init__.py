"""
Crawler components - data for combatants.

All components are Pydantic models registered for save decoding.
"""

from crawler_framework.components.vitals import HealthMatrix, SpellGauge
from crawler_framework.components.position import GridPosition, Direction
from crawler_framework.components.inventory import FragmentInventory

__all__ = [
    # Vitals
    "HealthMatrix",
    "SpellGauge",
    # Position
    "GridPosition",
    "Direction",
    # Inventory
    "FragmentInventory",
]
