"""
Dev Event Sink Adapters.

Stand-ins for the message broker during local development and tests.

Key behaviors:
- LoggingEventSink logs each published message instead of sending it
- InMemoryEventSink records messages per queue for test assertions
- Both implement EventSinkPort
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from src.core.entities import DomainEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishedMessage:
    """Record of a published event for test assertions."""

    queue_name: str
    event: DomainEvent
    message: dict[str, Any]
    published_at: datetime


@dataclass
class LoggingEventSink:
    """Logs broker messages to the application log."""

    log_level: int = logging.INFO

    def publish(self, queue_name: str, event: DomainEvent) -> None:
        logger.log(
            self.log_level,
            "Event published to %s: %s",
            queue_name,
            json.dumps(event.to_message(), default=str),
        )


@dataclass
class InMemoryEventSink:
    """
    Thread-safe in-memory sink.

    fail_with makes every publish raise, to exercise delivery failure paths.
    """

    published: list[PublishedMessage] = field(default_factory=list)
    fail_with: Exception | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def publish(self, queue_name: str, event: DomainEvent) -> None:
        if self.fail_with is not None:
            raise self.fail_with

        record = PublishedMessage(
            queue_name=queue_name,
            event=event,
            message=event.to_message(),
            published_at=datetime.now(UTC),
        )
        with self._lock:
            self.published.append(record)

    def messages_for(self, queue_name: str) -> list[PublishedMessage]:
        with self._lock:
            return [m for m in self.published if m.queue_name == queue_name]

    def events_of_type(self, event_type: str) -> list[DomainEvent]:
        with self._lock:
            return [m.event for m in self.published if m.event.type == event_type]

    def wait_for(self, count: int, timeout: float = 2.0) -> bool:
        """Poll until at least count messages were published."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if len(self.published) >= count:
                    return True
            time.sleep(0.01)
        with self._lock:
            return len(self.published) >= count

    def clear(self) -> None:
        with self._lock:
            self.published.clear()
