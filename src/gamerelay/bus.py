"""Signal-based event bus for relay observability."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from blinker import Signal
from loguru import logger

from gamerelay.channels.events import RelayEvent

EventHandler = Callable[[RelayEvent], None]


class EventBus:
    """In-process event bus backed by one blinker signal."""

    def __init__(self) -> None:
        self._events = Signal("gamerelay.events")

    def emit(self, event: RelayEvent) -> None:
        self._events.send(self, event=event)

    def subscribe(self, handler: EventHandler, event_type: type[RelayEvent] | None = None) -> Callable[[], None]:
        """Connect ``handler``. A failing handler is logged and never affects other subscribers or the emitter."""

        def _receiver(sender: Any, *, event: RelayEvent) -> None:
            if event_type is not None and not isinstance(event, event_type):
                return
            try:
                handler(event)
            except Exception:
                logger.exception("bus.handler.error event={} handler={!r}", event.name, handler)

        self._events.connect(_receiver, weak=False)
        return lambda: self._events.disconnect(_receiver)
