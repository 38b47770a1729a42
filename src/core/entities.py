"""
Core value objects shared across components.

- DomainEvent: immutable fact emitted after a committed state change
- ParentRelation: who may read assets attached to a parent resource (lesson)

Persistent entities (Asset, Course, Lesson) and Principal live in
src.domain.entities and are re-exported here for convenience.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any
from uuid import UUID

from src.domain.entities import Asset, Course, Lesson, Principal

__all__ = [
    # Domain entities
    "Asset",
    "Course",
    "Lesson",
    "Principal",
    # Value objects
    "DomainEvent",
    "EventType",
    "ParentRelation",
]


class EventType:
    """Event type labels emitted by the service."""

    UPLOAD = "upload"
    DELETE = "delete"
    ENROLL = "enroll"
    LESSON_CREATED = "lesson.created"


@dataclass(frozen=True)
class DomainEvent:
    """
    Immutable, fire-and-forget domain event.

    No identity beyond what the consumer assigns.
    """

    type: str
    subject_id: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        # Freeze the payload so consumers can't mutate a shared event.
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    def to_message(self) -> dict[str, Any]:
        """Wire representation handed to the broker."""
        return {
            "type": self.type,
            "subjectId": self.subject_id,
            "payload": dict(self.payload),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ParentRelation:
    """
    Indirect read access granted through a parent resource.

    Looked up by parent id; treated by the access engine as opaque facts.
    """

    parent_id: UUID
    instructor_id: str | None = None
    enrolled: frozenset[str] = frozenset()

    def is_enrolled(self, subject_id: str) -> bool:
        return subject_id in self.enrolled
