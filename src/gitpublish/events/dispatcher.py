from __future__ import annotations

import logging
from typing import Any

from gitpublish.events.observer import EventObserver
from gitpublish.events.types import EVENT_TYPE_MAP, Event

logger = logging.getLogger(__name__)


class EventEmitter:
    """Protocol for event emission (satisfied by EventDispatcher)."""

    def emit(self, event_type: str, **data: Any) -> None: ...


class EventDispatcher:
    """Turns named publish progress events into models and fans them out to observers."""

    def __init__(self, observers: list[EventObserver] | None = None) -> None:
        self._observers: list[EventObserver] = list(observers or [])

    def add_observer(self, observer: EventObserver) -> None:
        self._observers.append(observer)

    def emit(self, event_type: str, **data: Any) -> None:
        event_cls = EVENT_TYPE_MAP.get(event_type)
        if event_cls is None:
            logger.debug("Dropping unknown event type %s", event_type)
            return
        event: Event = event_cls(**data)
        for observer in self._observers:
            observer.on_event(event)
