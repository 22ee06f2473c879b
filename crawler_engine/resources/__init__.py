"""
Resources module - static data loading.
"""

from crawler_engine.resources.database import Database, DatabaseError

__all__ = [
    "Database",
    "DatabaseError",
]
