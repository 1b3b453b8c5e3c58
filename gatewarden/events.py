"""
Events for Gatewarden.

`GateManagerResolved` is dispatched once a `GateManager` has finished
bootstrapping, so listeners can register further abilities, policies or
callbacks. `SimpleEventDispatcher` is a minimal dispatcher satisfying the
`EventDispatcher` protocol.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from gatewarden.manager import GateManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateManagerResolved:
    """The gate manager finished bootstrapping."""
    gate: GateManager


class SimpleEventDispatcher:
    """
    Synchronous in-process event dispatcher.

    Listeners are registered per event class and called in registration
    order. Listener results are ignored.

    Example:
        >>> events = SimpleEventDispatcher()
        >>> events.listen(
        ...     GateManagerResolved,
        ...     lambda event: event.gate.define("export-reports", can_export),
        ... )
    """

    def __init__(self) -> None:
        self._listeners: dict[type, list[Callable[[Any], Any]]] = defaultdict(list)

    def listen(self, event_type: type, listener: Callable[[Any], Any]) -> None:
        """Register a listener for an event class (and its subclasses)."""
        self._listeners[event_type].append(listener)

    def remove_listener(self, event_type: type, listener: Callable[[Any], Any]) -> bool:
        """
        Remove a listener.

        Returns:
            True if the listener was removed, False if not found.
        """
        try:
            self._listeners[event_type].remove(listener)
            return True
        except ValueError:
            return False

    def has_listeners(self, event_type: type) -> bool:
        return any(
            listeners and issubclass(event_type, registered)
            for registered, listeners in self._listeners.items()
        )

    def dispatch(self, event: object) -> object:
        """Call every listener registered for the event's class; returns the event."""
        for event_type, listeners in list(self._listeners.items()):
            if not isinstance(event, event_type):
                continue
            for listener in list(listeners):
                listener(event)
        logger.debug(f"Dispatched {type(event).__name__}")
        return event
