"""
Crawler Engine

Game-agnostic substrate for the matrix dungeon crawler: the 2x2 matrix
algebra, Pydantic components, a typed event bus, seeded randomness and
a validated JSON data store.

Quick Start:
    from crawler_engine import Matrix, Operation, apply

    apply(Operation.AVERAGE, Matrix(1, 2, 3, 4), Matrix.zero())
"""

__version__ = "0.1.0"

from crawler_engine.algebra import Matrix, Operation, apply
from crawler_engine.core import (
    Component,
    register_component,
    EventBus,
    Event,
    derive_seed,
    make_rng,
)
from crawler_engine.resources import Database, DatabaseError

__all__ = [
    # Algebra
    "Matrix",
    "Operation",
    "apply",
    # Core
    "Component",
    "register_component",
    "EventBus",
    "Event",
    "derive_seed",
    "make_rng",
    # Resources
    "Database",
    "DatabaseError",
]
