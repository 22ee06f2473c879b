"""
Save/Load system - run state persistence.

Provides:
- Run state to/from JSON bytes with a version and checksum
- Numbered save slots with metadata files
- Integrity validation

Loading either fully succeeds or returns a SaveError; a partially
decoded state is never handed back.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Any, Optional

from crawler_engine.core.events import EventBus
from crawler_framework.world import RunState, RunStatus

logger = logging.getLogger(__name__)

SAVE_VERSION = "1.0"


class SaveErrorKind(Enum):
    CORRUPT_STATE = auto()
    VERSION_MISMATCH = auto()
    MISSING = auto()


@dataclass(frozen=True)
class SaveError:
    """Why a save could not be loaded."""
    kind: SaveErrorKind
    message: str = ""

    @property
    def ok(self) -> bool:
        return False


class SaveEvent(Enum):
    """Save system events."""
    SAVE_COMPLETED = auto()
    SAVE_FAILED = auto()
    LOAD_COMPLETED = auto()
    LOAD_FAILED = auto()
    SAVE_DELETED = auto()


@dataclass
class SaveMetadata:
    """Metadata about a save slot."""
    slot: int
    name: str
    timestamp: str
    depth: int
    max_depth: int
    steps: int
    status: str


def calculate_checksum(data: dict[str, Any]) -> str:
    """Base64 SHA-256 of the canonical JSON form."""
    json_str = json.dumps(data, sort_keys=True, separators=(',', ':'))
    hash_bytes = hashlib.sha256(json_str.encode('utf-8')).digest()
    return base64.b64encode(hash_bytes).decode('ascii')


def serialize_run_state(state: RunState) -> bytes:
    """Encode a run state as versioned, checksummed JSON."""
    payload = {
        'version': SAVE_VERSION,
        'state': state.to_dict(),
    }
    payload['checksum'] = calculate_checksum(payload)
    return json.dumps(payload, sort_keys=True).encode('utf-8')


def deserialize_run_state(blob: Optional[bytes]) -> RunState | SaveError:
    """
    Decode bytes from serialize_run_state().

    Returns:
        The RunState, or a SaveError (MISSING, VERSION_MISMATCH or
        CORRUPT_STATE)
    """
    if not blob:
        return SaveError(SaveErrorKind.MISSING, "No save data")

    try:
        payload = json.loads(blob.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        return SaveError(SaveErrorKind.CORRUPT_STATE, f"Unreadable save: {e}")

    if not isinstance(payload, dict) or 'state' not in payload:
        return SaveError(SaveErrorKind.CORRUPT_STATE, "Save has no state")

    version = payload.get('version')
    if version != SAVE_VERSION:
        return SaveError(
            SaveErrorKind.VERSION_MISMATCH,
            f"Save version {version!r}, expected {SAVE_VERSION!r}",
        )

    expected = payload.pop('checksum', None)
    if expected is None or calculate_checksum(payload) != expected:
        return SaveError(SaveErrorKind.CORRUPT_STATE, "Checksum mismatch")

    data = payload['state']
    if not isinstance(data, dict):
        return SaveError(SaveErrorKind.CORRUPT_STATE, "State is not an object")
    for key in ('player', 'level', 'spells'):
        if key in data and not isinstance(data[key], dict):
            return SaveError(SaveErrorKind.CORRUPT_STATE, f"State field {key!r} is not an object")

    try:
        state = RunState.from_dict(data)
    except (KeyError, TypeError, ValueError, IndexError, AttributeError) as e:
        return SaveError(SaveErrorKind.CORRUPT_STATE, f"Invalid state: {e}")

    problem = _encounter_problem(state)
    if problem:
        return SaveError(SaveErrorKind.CORRUPT_STATE, problem)
    return state


def _encounter_problem(state: RunState) -> Optional[str]:
    """A battle in progress must name live enemies of the current level."""
    if state.status is not RunStatus.IN_BATTLE:
        return None
    if not state.encounter:
        return "In battle with no encounter"
    for enemy_id in state.encounter:
        if state.level.enemy(enemy_id) is None or enemy_id in state.defeated:
            return f"Encounter names unknown or defeated enemy {enemy_id!r}"
    return None


class SaveManager:
    """
    Manages run saves in numbered slots.

    Each slot is a save file plus a small metadata file so slot lists
    can be shown without decoding whole runs.

    Usage:
        saves = SaveManager("saves", event_bus=bus)
        saves.save(0, run.state, name="Before the crypt")
        state = saves.load(0)
    """

    MAX_SLOTS = 10

    def __init__(
        self,
        save_path: Path | str = "saves",
        event_bus: Optional[EventBus] = None,
        max_slots: int = MAX_SLOTS,
    ):
        self.save_path = Path(save_path)
        self.save_path.mkdir(parents=True, exist_ok=True)
        self.event_bus = event_bus
        self.max_slots = max_slots

    def _check_slot(self, slot: int) -> None:
        if not 0 <= slot < self.max_slots:
            raise ValueError(f"Slot {slot} outside 0..{self.max_slots - 1}")

    def _get_slot_path(self, slot: int) -> Path:
        return self.save_path / f"run_{slot:02d}.json"

    def _get_metadata_path(self, slot: int) -> Path:
        return self.save_path / f"run_{slot:02d}_meta.json"

    def exists(self, slot: int) -> bool:
        self._check_slot(slot)
        return self._get_slot_path(slot).exists()

    def save(self, slot: int, state: RunState, name: str = "") -> bool:
        """
        Write a run state to a slot.

        Args:
            slot: Slot number
            state: Run to save
            name: Display name for the slot

        Returns:
            True if both the save and its metadata were written
        """
        self._check_slot(slot)
        metadata = SaveMetadata(
            slot=slot,
            name=name or f"Depth {state.depth}",
            timestamp=datetime.now().isoformat(),
            depth=state.depth,
            max_depth=state.max_depth,
            steps=state.steps,
            status=state.status.value,
        )

        try:
            self._get_slot_path(slot).write_bytes(serialize_run_state(state))
            with open(self._get_metadata_path(slot), 'w', encoding='utf-8') as f:
                json.dump(asdict(metadata), f, indent=2)
        except OSError as e:
            logger.error(f"Save to slot {slot} failed: {e}")
            self._publish(SaveEvent.SAVE_FAILED, slot=slot, error=str(e))
            return False

        logger.info(f"Saved run to slot {slot} (depth {state.depth})")
        self._publish(SaveEvent.SAVE_COMPLETED, slot=slot)
        return True

    def load(self, slot: int) -> RunState | SaveError:
        """Read a run state from a slot."""
        self._check_slot(slot)
        path = self._get_slot_path(slot)
        if not path.exists():
            return SaveError(SaveErrorKind.MISSING, f"Slot {slot} is empty")

        try:
            blob = path.read_bytes()
        except OSError as e:
            logger.error(f"Could not read slot {slot}: {e}")
            self._publish(SaveEvent.LOAD_FAILED, slot=slot, error=str(e))
            return SaveError(SaveErrorKind.MISSING, str(e))

        result = deserialize_run_state(blob)
        if isinstance(result, SaveError):
            logger.error(f"Load from slot {slot} failed: {result.kind.name} {result.message}")
            self._publish(SaveEvent.LOAD_FAILED, slot=slot, error=result.kind)
            return result

        self._publish(SaveEvent.LOAD_COMPLETED, slot=slot)
        return result

    def delete(self, slot: int) -> bool:
        """Delete a slot. Returns False when it was already empty."""
        self._check_slot(slot)
        removed = False
        for path in (self._get_slot_path(slot), self._get_metadata_path(slot)):
            if path.exists():
                path.unlink()
                removed = True
        if removed:
            self._publish(SaveEvent.SAVE_DELETED, slot=slot)
        return removed

    def validate(self, slot: int) -> bool:
        """Whether a slot holds a loadable save."""
        self._check_slot(slot)
        path = self._get_slot_path(slot)
        if not path.exists():
            return False
        return not isinstance(deserialize_run_state(path.read_bytes()), SaveError)

    def list_slots(self) -> list[Optional[SaveMetadata]]:
        """Metadata for every slot, None for empty or unreadable ones."""
        slots: list[Optional[SaveMetadata]] = []
        for slot in range(self.max_slots):
            meta_path = self._get_metadata_path(slot)
            if not meta_path.exists():
                slots.append(None)
                continue
            try:
                with open(meta_path, 'r', encoding='utf-8') as f:
                    slots.append(SaveMetadata(**json.load(f)))
            except (OSError, json.JSONDecodeError, TypeError) as e:
                logger.warning(f"Unreadable metadata for slot {slot}: {e}")
                slots.append(None)
        return slots

    def _publish(self, event_type: SaveEvent, **data) -> None:
        if self.event_bus:
            self.event_bus.publish(event_type, **data)
