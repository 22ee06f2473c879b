"""
Typed event bus for decoupled communication.

Uses Enums for event types to prevent magic strings. Front ends
(renderers, sound, high-score stores) subscribe to the bus instead of
being called by the simulation core directly.

Usage:
    class BattleEvent(Enum):
        CAST_RESOLVED = auto()

    event_bus.subscribe(BattleEvent.CAST_RESOLVED, on_cast)
    event_bus.publish(BattleEvent.CAST_RESOLVED, caster="player", cost=4)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: The event type (Enum member)
        data: Dictionary of event-specific data
        consumed: Whether the event has been handled
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        """Mark event as consumed (stops propagation)."""
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        """Get event data by key."""
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


class EventBus:
    """
    Central event bus for publish/subscribe messaging.

    Features:
    - Typed events (Enum-based)
    - Priority ordering
    - Weak references (auto-cleanup when handlers are deleted)
    - One-shot handlers
    - Event consumption (stops propagation)
    - Event history for replay/inspection (optional)
    """

    def __init__(self, history_size: int = 0):
        # event type -> list of (priority, handler_ref, one_shot)
        self._handlers: dict[Enum, list[tuple[int, Any, bool]]] = {}
        self._event_queue: list[Event] = []
        self._is_publishing = False
        self._history_size = history_size
        self._history: list[Event] = []

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to listen for
            handler: Callback function(event: Event)
            priority: Higher priority handlers are called first (default 0)
            one_shot: If True, handler is removed after first call
            weak: If True, hold a weak reference to the handler
        """
        if weak:
            if hasattr(handler, '__self__'):
                handler_ref = WeakMethod(handler)
            else:
                handler_ref = ref(handler)
        else:
            handler_ref = handler

        handlers = self._handlers.setdefault(event_type, [])
        entry = (priority, handler_ref, one_shot)

        # Stable insert: after every handler with priority >= ours
        insert_idx = len(handlers)
        for i, (p, _, _) in enumerate(handlers):
            if priority > p:
                insert_idx = i
                break

        handlers.insert(insert_idx, entry)

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """Unsubscribe a handler from an event type."""
        if event_type not in self._handlers:
            return

        self._handlers[event_type] = [
            (p, h, o) for p, h, o in self._handlers[event_type]
            if self._get_handler(h) != handler
        ]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish an event.

        Events published from inside a handler are queued and
        dispatched after the current event finishes.

        Returns:
            The Event object (check .consumed to see if it was handled)
        """
        event = Event(type=event_type, data=data)

        if self._history_size:
            self._history.append(event)
            if len(self._history) > self._history_size:
                self._history.pop(0)

        if self._is_publishing:
            self._event_queue.append(event)
        else:
            self._dispatch(event)

        return event

    def clear(self, event_type: Enum | None = None) -> None:
        """Clear handlers for one event type, or all of them."""
        if event_type is None:
            self._handlers.clear()
        elif event_type in self._handlers:
            del self._handlers[event_type]

    @property
    def history(self) -> list[Event]:
        """Recently published events, oldest first."""
        return list(self._history)

    def _dispatch(self, event: Event) -> None:
        """Dispatch event to handlers."""
        handlers = self._handlers.get(event.type)
        if not handlers:
            return

        self._is_publishing = True
        to_remove = []

        try:
            for i, (_priority, handler_ref, one_shot) in enumerate(handlers):
                handler = self._get_handler(handler_ref)

                if handler is None:
                    # Weak reference was garbage collected
                    to_remove.append(i)
                    continue

                try:
                    handler(event)
                except Exception:
                    logger.exception(f"Error in event handler for {event.type}")

                if one_shot:
                    to_remove.append(i)

                if event.consumed:
                    break

            for i in reversed(to_remove):
                handlers.pop(i)
        finally:
            self._is_publishing = False

        while self._event_queue:
            self._dispatch(self._event_queue.pop(0))

    def _get_handler(self, handler_ref: Any) -> EventHandler | None:
        """Resolve handler from reference."""
        if isinstance(handler_ref, (ref, WeakMethod)):
            return handler_ref()
        return handler_ref
