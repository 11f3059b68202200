"""EventDesk data models."""

from eventdesk.models.enums import (
    ArtifactKind,
    ContractorStatus,
    EventStatus,
    MemberStatus,
    RemovalReason,
    RosterKind,
    SharingMode,
    TabId,
    TaskStatus,
)
from eventdesk.models.actor import Actor
from eventdesk.models.event import Event, StatusHistoryEntry
from eventdesk.models.roster import Contractor, Roster, RosterMember
from eventdesk.models.sharing import (
    EffectiveViewers,
    ShareAll,
    ShareNone,
    ShareSelected,
    SharingAxis,
    SharingSpec,
    axis_for_mode,
)
from eventdesk.models.artifact import Artifact, ArtifactVisibility, Document, Task

__all__ = [
    "Actor",
    "Artifact",
    "ArtifactKind",
    "ArtifactVisibility",
    "Contractor",
    "ContractorStatus",
    "Document",
    "EffectiveViewers",
    "Event",
    "EventStatus",
    "MemberStatus",
    "RemovalReason",
    "Roster",
    "RosterKind",
    "RosterMember",
    "ShareAll",
    "ShareNone",
    "ShareSelected",
    "SharingAxis",
    "SharingMode",
    "SharingSpec",
    "StatusHistoryEntry",
    "TabId",
    "Task",
    "TaskStatus",
    "axis_for_mode",
]
