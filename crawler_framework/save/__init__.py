"""
Save module - run state persistence.

Provides:
- Versioned, checksummed run state serialization
- Numbered save slots with metadata
- Integrity validation
"""

from crawler_framework.save.manager import (
    SaveManager,
    SaveMetadata,
    SaveError,
    SaveErrorKind,
    SaveEvent,
    SAVE_VERSION,
    calculate_checksum,
    serialize_run_state,
    deserialize_run_state,
)

__all__ = [
    "SaveManager",
    "SaveMetadata",
    "SaveError",
    "SaveErrorKind",
    "SaveEvent",
    "SAVE_VERSION",
    "calculate_checksum",
    "serialize_run_state",
    "deserialize_run_state",
]
