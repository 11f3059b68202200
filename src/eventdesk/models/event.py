"""Event model - the unit whose lifecycle gates everything else."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from eventdesk.models.enums import EventStatus


class Event(BaseModel):
    """An organizer's event."""

    # Identity
    event_id: UUID
    title: str
    description: Optional[str] = None
    event_date: Optional[datetime] = None

    # Ownership (immutable after creation)
    created_by: str

    # Status (mutated only by the transition engine)
    status: EventStatus = EventStatus.DRAFT

    # Timestamps
    created_at: datetime
    updated_at: datetime

    def is_owner(self, person_id: str) -> bool:
        return self.created_by == person_id


class StatusHistoryEntry(BaseModel):
    """Append-only record of one status change."""

    entry_id: UUID
    event_id: UUID
    sequence: int
    previous_status: Optional[EventStatus] = None
    new_status: EventStatus
    changed_by: str
    reason: Optional[str] = None
    timestamp: datetime
