from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List

import structlog

from ..schemas.base import utcnow


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    source: str  # store name, e.g. "documents"
    name: str  # changed collection or derived value, e.g. "unread_count"
    data: Any = None
    emitted_at: datetime = field(default_factory=utcnow)

    @property
    def key(self) -> str:
        return f"{self.source}.{self.name}"


Listener = Callable[[ChangeEvent], None]


class EventEmitter:
    """Synchronous publish/subscribe for one store."""

    def __init__(self, source: str) -> None:
        self.source = source
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, name: str, data: Any = None) -> ChangeEvent:
        event = ChangeEvent(source=self.source, name=name, data=data)
        # Snapshot so listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("change_listener_failed", event_key=event.key)
        return event

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
