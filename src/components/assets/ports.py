"""
Assets component port definitions.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.components.notifier.ports import NotifierPort
from src.core.entities import ParentRelation
from src.core.ports.db import AssetRepoPort
from src.core.ports.storage import ObjectStorePort


class RelationLookupPort(Protocol):
    """Enrollment collaborator: who may read assets attached to a lesson."""

    def relation_for(self, parent_id: UUID) -> ParentRelation | None:
        """Instructor and enrolled set for a lesson, or None if unknown."""
        ...

    def lesson_exists(self, lesson_id: UUID) -> bool:
        ...


__all__ = [
    "AssetRepoPort",
    "NotifierPort",
    "ObjectStorePort",
    "RelationLookupPort",
]
