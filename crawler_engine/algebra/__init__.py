"""
Matrix algebra - 2x2 value type and operations.
"""

from crawler_engine.algebra.matrix import Matrix, Operation, apply

__all__ = [
    "Matrix",
    "Operation",
    "apply",
]
