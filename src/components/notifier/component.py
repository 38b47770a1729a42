"""
Notifier component - Fire-and-forget domain event emission.

Events are pushed onto a bounded in-process queue and delivered to the
broker sink by a background daemon thread. The caller never waits on the
broker, and a delivery failure never propagates back to the caller.

Invariants:
- notify() never blocks and never raises
- A full or stopped queue drops the event with a warning
- Each queued event is handed to the sink at most once
"""

from __future__ import annotations

import logging
import queue
import threading
import time

from src.core.entities import DomainEvent
from src.core.errors import EventDeliveryFailedError

from .models import DeliveryStats, EnqueueOutcome, EventRoutes, NotifierConfig
from .ports import EventSinkPort

logger = logging.getLogger(__name__)


def route_event(event: DomainEvent, routes: EventRoutes) -> str:
    """Resolve the destination queue for an event."""
    return routes.queue_for(event.type)


def deliver(sink: EventSinkPort, event: DomainEvent, routes: EventRoutes) -> None:
    """
    Publish a single event synchronously.

    Raises EventDeliveryFailedError when the sink fails.
    """
    queue_name = route_event(event, routes)
    try:
        sink.publish(queue_name, event)
    except Exception as e:
        raise EventDeliveryFailedError(
            f"Failed to publish {event.type} to {queue_name}: {e}"
        ) from e


class EventNotifier:
    """
    Bounded queue drained by a daemon worker thread.

    start() and stop() are idempotent; notify() is safe from any thread.
    """

    def __init__(
        self,
        sink: EventSinkPort,
        config: NotifierConfig | None = None,
    ) -> None:
        self._sink = sink
        self._config = config or NotifierConfig()
        self._queue: queue.Queue[DomainEvent] = queue.Queue(maxsize=self._config.capacity)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False
        self._lock = threading.Lock()
        self._queued = 0
        self._delivered = 0
        self._failed = 0
        self._dropped = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def routes(self) -> EventRoutes:
        return self._config.routes

    def start(self) -> None:
        """Start the background delivery worker."""
        if self._running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._drain_loop, name="event-notifier", daemon=True
        )
        self._thread.start()
        self._running = True
        logger.info("Event notifier started (capacity: %d)", self._config.capacity)

    def stop(self) -> None:
        """Stop accepting events, deliver what is queued, then stop the worker."""
        if not self._running:
            return

        self._running = False
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self._config.stop_timeout_seconds)
        self._thread = None
        logger.info("Event notifier stopped (%d undelivered)", self._queue.qsize())

    def notify(self, event: DomainEvent) -> EnqueueOutcome:
        """Enqueue an event for delivery without blocking."""
        if not self._running:
            self._count_drop()
            logger.warning(
                "Notifier stopped; dropping %s event for %s", event.type, event.subject_id
            )
            return EnqueueOutcome.DROPPED_STOPPED

        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._count_drop()
            logger.warning(
                "Event queue full; dropping %s event for %s", event.type, event.subject_id
            )
            return EnqueueOutcome.DROPPED_FULL

        with self._lock:
            self._queued += 1
        return EnqueueOutcome.QUEUED

    def flush(self, timeout: float = 5.0) -> bool:
        """Wait until every queued event has been handed to the sink."""
        deadline = time.monotonic() + timeout
        while self._queue.unfinished_tasks > 0:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def stats(self) -> DeliveryStats:
        with self._lock:
            return DeliveryStats(
                queued=self._queued,
                delivered=self._delivered,
                failed=self._failed,
                dropped=self._dropped,
            )

    def _count_drop(self) -> None:
        with self._lock:
            self._dropped += 1

    def _drain_loop(self) -> None:
        """Background delivery loop."""
        while True:
            try:
                event = self._queue.get(timeout=self._config.poll_interval_seconds)
            except queue.Empty:
                if self._stop_event.is_set():
                    return
                continue

            try:
                deliver(self._sink, event, self._config.routes)
                with self._lock:
                    self._delivered += 1
            except EventDeliveryFailedError:
                with self._lock:
                    self._failed += 1
                logger.exception("Event delivery failed for %s", event.subject_id)
            finally:
                self._queue.task_done()


# --- Functional Entry Points ---


def run_notify(notifier: EventNotifier, event: DomainEvent) -> EnqueueOutcome:
    """Functional entry point for event emission."""
    return notifier.notify(event)


def create_notifier(
    sink: EventSinkPort,
    config: NotifierConfig | None = None,
    *,
    start: bool = False,
) -> EventNotifier:
    """Create a notifier, optionally starting its worker."""
    notifier = EventNotifier(sink, config)
    if start:
        notifier.start()
    return notifier
