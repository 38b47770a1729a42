"""
Notifier component - Asynchronous domain event emission.
"""

from .component import (
    EventNotifier,
    create_notifier,
    deliver,
    route_event,
    run_notify,
)
from .models import (
    FILE_PROCESSING_QUEUE,
    NOTIFICATION_QUEUE,
    DeliveryStats,
    EnqueueOutcome,
    EventRoutes,
    NotifierConfig,
)
from .ports import EventSinkPort, NotifierPort

__all__ = [
    # Entry points
    "run_notify",
    # Helper functions
    "deliver",
    "route_event",
    # Service class
    "EventNotifier",
    "create_notifier",
    # Configuration
    "FILE_PROCESSING_QUEUE",
    "NOTIFICATION_QUEUE",
    "EventRoutes",
    "NotifierConfig",
    # Output models
    "DeliveryStats",
    "EnqueueOutcome",
    # Ports
    "EventSinkPort",
    "NotifierPort",
]
