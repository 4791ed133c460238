"""Synchronous publish-subscribe bus for safety-gate lifecycle events."""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class EventBus:
    """Dispatches gate events to listeners in registration order.

    Typed listeners receive only events of their exact class; global
    listeners receive every event and are called first.
    """

    def __init__(self) -> None:
        self._by_type: dict[type, list[Listener]] = {}
        self._everything: list[Listener] = []

    def subscribe(self, event_type: type, callback: Listener) -> None:
        self._by_type.setdefault(event_type, []).append(callback)

    def on_all(self, callback: Listener) -> None:
        self._everything.append(callback)

    def unsubscribe(self, event_type: type, callback: Listener) -> None:
        listeners = self._by_type.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event: Any) -> None:
        logger.debug("event: %s", event)
        for callback in [*self._everything, *self._by_type.get(type(event), [])]:
            callback(event)
