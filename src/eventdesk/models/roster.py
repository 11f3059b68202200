"""Roster models - team members and contractors of an event."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from eventdesk.models.enums import ContractorStatus, MemberStatus


class RosterMember(BaseModel):
    """A team member's membership on one event."""

    # Membership id, distinct from the person id
    member_id: UUID
    event_id: UUID
    person_id: str
    name: str
    role: str
    is_creator: bool = False
    status: MemberStatus = MemberStatus.ACTIVE
    added_at: datetime


class Contractor(BaseModel):
    """A contractor (business) associated with an event."""

    contractor_id: UUID
    event_id: UUID
    company_name: str
    status: ContractorStatus = ContractorStatus.PENDING
    added_at: datetime


class Roster(BaseModel):
    """Snapshot of an event's roster, read fresh for every request."""

    event_id: UUID
    team_members: list[RosterMember] = Field(default_factory=list)
    contractors: list[Contractor] = Field(default_factory=list)

    @property
    def team_member_ids(self) -> frozenset[UUID]:
        return frozenset(m.member_id for m in self.team_members)

    @property
    def contractor_ids(self) -> frozenset[UUID]:
        return frozenset(c.contractor_id for c in self.contractors)

    @property
    def creator(self) -> Optional[RosterMember]:
        for member in self.team_members:
            if member.is_creator:
                return member
        return None

    def get_member(self, member_id: UUID) -> Optional[RosterMember]:
        for member in self.team_members:
            if member.member_id == member_id:
                return member
        return None

    def get_contractor(self, contractor_id: UUID) -> Optional[Contractor]:
        for contractor in self.contractors:
            if contractor.contractor_id == contractor_id:
                return contractor
        return None

    def member_ids_for_person(self, person_id: str) -> frozenset[UUID]:
        """Membership ids held by one person (normally zero or one)."""
        return frozenset(
            m.member_id for m in self.team_members if m.person_id == person_id
        )
