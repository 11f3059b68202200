"""Sharing rules - who an artifact is shared with.

Each artifact carries two independent axes (team members, contractors). An
axis is a tagged union: ``ALL``, ``NONE`` or ``SELECTED(ids)``. Only the
``SELECTED`` variant has ids, so an axis can never hold a stale selection
next to an ``ALL``/``NONE`` mode.
"""

from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from eventdesk.models.enums import SharingMode


class ShareAll(BaseModel):
    """Shared with every current roster entry of the axis."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["all"] = "all"


class ShareNone(BaseModel):
    """Shared with nobody on the axis."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["none"] = "none"


class ShareSelected(BaseModel):
    """Shared with an explicit subset of roster ids."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["selected"] = "selected"
    ids: frozenset[UUID] = Field(default_factory=frozenset)

    @field_serializer("ids", when_used="json")
    def _serialize_ids(self, ids: frozenset[UUID]) -> list[str]:
        return sorted(str(i) for i in ids)


SharingAxis = Annotated[
    Union[ShareAll, ShareNone, ShareSelected],
    Field(discriminator="mode"),
]


def axis_for_mode(mode: SharingMode) -> Union[ShareAll, ShareNone, ShareSelected]:
    """Return a fresh axis for ``mode``; ``SELECTED`` starts empty."""
    if mode == SharingMode.ALL:
        return ShareAll()
    if mode == SharingMode.NONE:
        return ShareNone()
    return ShareSelected()


class SharingSpec(BaseModel):
    """Sharing settings attached to a document or task."""

    model_config = ConfigDict(frozen=True)

    team: SharingAxis = Field(default_factory=ShareNone)
    contractors: SharingAxis = Field(default_factory=ShareNone)

    @classmethod
    def private(cls) -> "SharingSpec":
        return cls(team=ShareNone(), contractors=ShareNone())

    @classmethod
    def everyone(cls) -> "SharingSpec":
        return cls(team=ShareAll(), contractors=ShareAll())


class EffectiveViewers(BaseModel):
    """Roster ids actually entitled to an artifact after resolution."""

    model_config = ConfigDict(frozen=True)

    team_member_ids: frozenset[UUID] = Field(default_factory=frozenset)
    contractor_ids: frozenset[UUID] = Field(default_factory=frozenset)

    @field_serializer("team_member_ids", "contractor_ids", when_used="json")
    def _serialize_ids(self, ids: frozenset[UUID]) -> list[str]:
        return sorted(str(i) for i in ids)
