"""Sharing resolver.

Pure functions over a sharing spec and a roster snapshot. Nothing here is
cached: callers pass the roster they just read, so membership changes show up
on the next resolution.
"""

from typing import Iterable, Union
from uuid import UUID

from eventdesk.engine.errors import ValidationFailed
from eventdesk.models import (
    EffectiveViewers,
    Roster,
    ShareAll,
    ShareNone,
    ShareSelected,
    SharingMode,
    SharingSpec,
    axis_for_mode,
)

Axis = Union[ShareAll, ShareNone, ShareSelected]


def resolve_axis(axis: Axis, roster_ids: Iterable[UUID]) -> frozenset[UUID]:
    """Resolve one axis against the current roster ids of its kind."""
    current = frozenset(roster_ids)
    if isinstance(axis, ShareAll):
        return current
    if isinstance(axis, ShareSelected):
        # Dangling ids (removed roster entries) fall out here
        return axis.ids & current
    return frozenset()


def resolve(spec: SharingSpec, roster: Roster) -> EffectiveViewers:
    """Compute the effective viewer sets for ``spec`` against ``roster``."""
    return EffectiveViewers(
        team_member_ids=resolve_axis(spec.team, roster.team_member_ids),
        contractor_ids=resolve_axis(spec.contractors, roster.contractor_ids),
    )


def visible_to_member(spec: SharingSpec, roster: Roster, member_id: UUID) -> bool:
    return member_id in resolve_axis(spec.team, roster.team_member_ids)


def visible_to_contractor(spec: SharingSpec, roster: Roster, contractor_id: UUID) -> bool:
    return contractor_id in resolve_axis(spec.contractors, roster.contractor_ids)


def switch_mode(axis: Axis, mode: SharingMode) -> Axis:
    """Switch an axis to ``mode``.

    Switching to the current mode is a no-op. Any other switch yields a fresh
    axis, so a selection never survives leaving ``SELECTED`` and entering
    ``SELECTED`` starts empty.
    """
    mode = SharingMode(mode)
    if axis.mode == mode.value:
        return axis
    return axis_for_mode(mode)


def toggle_selected(axis: Axis, roster_id: UUID) -> ShareSelected:
    """Add or remove one id from a ``SELECTED`` axis."""
    if not isinstance(axis, ShareSelected):
        raise ValidationFailed(
            f"Cannot toggle an individual selection while sharing mode is {axis.mode}",
            field="mode",
        )
    if roster_id in axis.ids:
        return ShareSelected(ids=axis.ids - {roster_id})
    return ShareSelected(ids=axis.ids | {roster_id})


def with_team(spec: SharingSpec, axis: Axis) -> SharingSpec:
    return SharingSpec(team=axis, contractors=spec.contractors)


def with_contractors(spec: SharingSpec, axis: Axis) -> SharingSpec:
    return SharingSpec(team=spec.team, contractors=axis)
