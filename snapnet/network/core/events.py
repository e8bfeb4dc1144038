# MIT License
# Copyright (c) 2025 Hashborn

"""
Event system for simulation reporting.

Peers and channels publish what happens to them; reporting layers
(snapshot collector, CLI, tests) subscribe. Every Simulation owns its own
bus, so independent simulations never see each other's events.
"""
from typing import Dict, List, Callable, Any, Optional
import logging

logger = logging.getLogger(__name__)

# Event names
SNAPSHOT_INITIATED = "snapshot_initiated"
SNAPSHOT_COMPLETED = "snapshot_completed"
MESSAGE_SENT = "message_sent"
MESSAGE_DELIVERED = "message_delivered"
MARKER_DISCARDED = "marker_discarded"


class EventBus:
    """
    Synchronous pub/sub.

    Callbacks run inline, in subscription order, inside the emitting
    delivery; a failing callback is logged and does not stop the others.
    """

    def __init__(self):
        self.listeners: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: Event name (e.g. SNAPSHOT_COMPLETED)
            callback: Called with the event payload as keyword arguments
        """
        self.listeners.setdefault(event_type, []).append(callback)
        logger.debug(f"Subscribed to event: {event_type}")

    def unsubscribe(self, event_type: str, callback: Callable) -> None:
        """
        Unsubscribe from an event type.

        Args:
            event_type: Event name
            callback: The callback to remove
        """
        if event_type in self.listeners:
            try:
                self.listeners[event_type].remove(callback)
                logger.debug(f"Unsubscribed from event: {event_type}")
            except ValueError:
                logger.warning(f"Callback not found for event: {event_type}")

    def emit(self, event_type: str, **data: Any) -> None:
        """
        Emit an event to all subscribers.

        Args:
            event_type: Event name (one of the module constants)
            **data: Event payload as keyword arguments
        """
        listeners = self.listeners.get(event_type)
        if not listeners:
            return

        for callback in list(listeners):
            try:
                callback(**data)
            except Exception as e:
                logger.error(f"Error in event callback for {event_type}: {e}", exc_info=True)

    def clear(self, event_type: Optional[str] = None) -> None:
        """Drop listeners for one event type, or for all of them when None."""
        if event_type:
            self.listeners.pop(event_type, None)
        else:
            self.listeners.clear()
