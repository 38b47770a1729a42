"""
Notifier component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.core.entities import DomainEvent


class EventSinkPort(Protocol):
    """
    Broker-facing delivery interface.

    Implementations publish one event to the named queue and raise on
    failure; the notifier decides what a failure means.
    """

    def publish(self, queue_name: str, event: DomainEvent) -> None:
        """Deliver event to queue_name."""
        ...


class NotifierPort(Protocol):
    """What producers of events depend on. Must not block or raise."""

    def notify(self, event: DomainEvent) -> object:
        """Hand event off for asynchronous delivery."""
        ...
