"""
Notifier component - Data models.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from src.core.entities import EventType

FILE_PROCESSING_QUEUE = "file.processing.queue"
NOTIFICATION_QUEUE = "notification.queue"


def _default_routes() -> Mapping[str, str]:
    return MappingProxyType({EventType.UPLOAD: FILE_PROCESSING_QUEUE})


@dataclass(frozen=True)
class EventRoutes:
    """
    Static event type -> queue table.

    Event types without an explicit route go to default_queue.
    """

    routes: Mapping[str, str] = field(default_factory=_default_routes)
    default_queue: str = NOTIFICATION_QUEUE

    def queue_for(self, event_type: str) -> str:
        return self.routes.get(event_type, self.default_queue)


@dataclass(frozen=True)
class NotifierConfig:
    capacity: int = 1000
    routes: EventRoutes = field(default_factory=EventRoutes)
    poll_interval_seconds: float = 0.1
    stop_timeout_seconds: float = 5.0


class EnqueueOutcome(Enum):
    QUEUED = "queued"
    DROPPED_FULL = "dropped_full"
    DROPPED_STOPPED = "dropped_stopped"


@dataclass(frozen=True)
class DeliveryStats:
    """Counters exposed for health checks and tests."""

    queued: int
    delivered: int
    failed: int
    dropped: int
