"""Task/document assignment tracker.

Bridges artifacts and roster entries: sanitizes stored assignments against
the live roster and decides whether a roster entry can be removed without
orphaning outstanding task assignments.
"""

from typing import Iterable, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel, Field

from eventdesk.engine.errors import NotFound
from eventdesk.engine.sharing import Axis, resolve_axis
from eventdesk.models import (
    RemovalReason,
    Roster,
    RosterKind,
    ShareSelected,
    SharingSpec,
    Task,
)


class RemovalCheck(BaseModel):
    """Result of a removal-safety check."""

    safe: bool
    reason: Optional[RemovalReason] = None
    blocking_tasks: list[Task] = Field(default_factory=list)


def sanitize_axis(axis: Axis, roster_ids: Iterable[UUID]) -> Axis:
    """Drop ids that are not on the current roster from a SELECTED axis."""
    if isinstance(axis, ShareSelected):
        return ShareSelected(ids=axis.ids & frozenset(roster_ids))
    return axis


def sanitize_sharing(spec: SharingSpec, roster: Roster) -> SharingSpec:
    return SharingSpec(
        team=sanitize_axis(spec.team, roster.team_member_ids),
        contractors=sanitize_axis(spec.contractors, roster.contractor_ids),
    )


def build_assignment(
    team_member_ids: Iterable[UUID],
    contractor_ids: Iterable[UUID],
    roster: Roster,
) -> SharingSpec:
    """Explicit assignment to the given ids; unknown ids are dropped."""
    return SharingSpec(
        team=ShareSelected(ids=frozenset(team_member_ids) & roster.team_member_ids),
        contractors=ShareSelected(ids=frozenset(contractor_ids) & roster.contractor_ids),
    )


def _selected_axis(task: Task, kind: RosterKind) -> Axis:
    return task.sharing.team if kind == RosterKind.TEAM else task.sharing.contractors


def directly_assigned_tasks(
    tasks: Sequence[Task],
    roster_id: UUID,
    kind: RosterKind = RosterKind.TEAM,
) -> list[Task]:
    """Tasks whose stored selection names ``roster_id``, in any status.

    Tasks shared via ALL do not count.
    """
    blocking = []
    for task in tasks:
        axis = _selected_axis(task, kind)
        if isinstance(axis, ShareSelected) and roster_id in axis.ids:
            blocking.append(task)
    return blocking


def assigned_tasks(
    tasks: Sequence[Task],
    roster: Roster,
    roster_id: UUID,
    kind: RosterKind = RosterKind.TEAM,
) -> list[Task]:
    """Tasks that explicitly select ``roster_id`` and still resolve to it.

    Once the roster entry is gone the resolver drops the dangling id, so the
    task is no longer reported.
    """
    current = roster.team_member_ids if kind == RosterKind.TEAM else roster.contractor_ids
    result = []
    for task in tasks:
        axis = _selected_axis(task, kind)
        if isinstance(axis, ShareSelected) and roster_id in resolve_axis(axis, current):
            result.append(task)
    return result


def check_member_removal(roster: Roster, member_id: UUID, tasks: Sequence[Task]) -> RemovalCheck:
    member = roster.get_member(member_id)
    if member is None:
        raise NotFound("Roster member", member_id)
    if member.is_creator:
        return RemovalCheck(safe=False, reason=RemovalReason.IS_CREATOR)

    blocking = directly_assigned_tasks(tasks, member_id, RosterKind.TEAM)
    if blocking:
        return RemovalCheck(safe=False, reason=RemovalReason.ASSIGNED_TASKS, blocking_tasks=blocking)
    return RemovalCheck(safe=True)


def check_contractor_removal(
    roster: Roster, contractor_id: UUID, tasks: Sequence[Task]
) -> RemovalCheck:
    if roster.get_contractor(contractor_id) is None:
        raise NotFound("Contractor", contractor_id)

    blocking = directly_assigned_tasks(tasks, contractor_id, RosterKind.CONTRACTOR)
    if blocking:
        return RemovalCheck(safe=False, reason=RemovalReason.ASSIGNED_TASKS, blocking_tasks=blocking)
    return RemovalCheck(safe=True)
