"""API request/response schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from eventdesk.models import (
    ArtifactVisibility,
    Contractor,
    ContractorStatus,
    Document,
    EffectiveViewers,
    EventStatus,
    MemberStatus,
    RemovalReason,
    RosterMember,
    SharingSpec,
    StatusHistoryEntry,
    TabId,
    Task,
    TaskStatus,
)


# ============================================================================
# Events
# ============================================================================


class CreateEventRequest(BaseModel):
    """Create event request."""

    title: str = Field(..., min_length=1, max_length=200, description="Event title")
    description: Optional[str] = Field(None, description="Free-form description")
    event_date: Optional[datetime] = Field(None, description="When the event takes place")
    creator_name: Optional[str] = Field(None, description="Display name for the creator member")
    register_creator: bool = Field(
        True, description="Add the owner to the team roster as the event creator"
    )


class TransitionRequest(BaseModel):
    """Status change request."""

    status: EventStatus = Field(..., description="Target status")
    reason: Optional[str] = Field(None, description="Optional reason recorded in the history")


class StatusHistoryResponse(BaseModel):
    """Status history of an event, oldest first."""

    event_id: UUID
    entries: list[StatusHistoryEntry]


class TabsResponse(BaseModel):
    """Tabs reachable for the event's current status."""

    event_id: UUID
    status: EventStatus
    tabs: list[TabId]


class TabActivationResponse(BaseModel):
    """Successful tab activation."""

    event_id: UUID
    tab: TabId
    allowed: bool


# ============================================================================
# Roster
# ============================================================================


class AddMemberRequest(BaseModel):
    """Add team member request."""

    person_id: str = Field(..., min_length=1, description="Person identifier")
    name: str = Field(..., min_length=1, description="Display name")
    role: str = Field(..., min_length=1, max_length=100, description="Role on the event")
    is_creator: bool = Field(False, description="Register as the event creator")
    status: MemberStatus = MemberStatus.ACTIVE


class AddContractorRequest(BaseModel):
    """Add contractor request."""

    company_name: str = Field(..., min_length=1, description="Company name")
    status: ContractorStatus = ContractorStatus.PENDING


class RosterResponse(BaseModel):
    """Roster snapshot."""

    event_id: UUID
    team_members: list[RosterMember]
    contractors: list[Contractor]


class RemovalCheckResponse(BaseModel):
    """Removal safety check result."""

    safe: bool
    reason: Optional[RemovalReason] = None
    blocking_task_ids: list[UUID] = Field(default_factory=list)


class AssignedTasksResponse(BaseModel):
    """Tasks currently assigned to a team member."""

    member_id: UUID
    tasks: list[Task]


# ============================================================================
# Artifacts
# ============================================================================


class CreateDocumentRequest(BaseModel):
    """Register an uploaded document."""

    name: str = Field(..., min_length=1, description="Document name")
    file_path: str = Field(..., min_length=1, description="Storage path of the uploaded blob")
    file_size: int = Field(..., gt=0, description="Size in bytes")
    mime_type: str = Field(..., description="MIME type")
    sharing: Optional[SharingSpec] = Field(None, description="Initial sharing (private if omitted)")


class CreateTaskRequest(BaseModel):
    """Create task request."""

    title: str = Field(..., min_length=1, max_length=255, description="Task title")
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    sharing: Optional[SharingSpec] = Field(None, description="Initial sharing (private if omitted)")


class UpdateSharingRequest(BaseModel):
    """Replace an artifact's sharing."""

    sharing: SharingSpec


class AssignRequest(BaseModel):
    """Explicit assignment to roster ids."""

    team_member_ids: list[UUID] = Field(default_factory=list)
    contractor_ids: list[UUID] = Field(default_factory=list)


class TaskStatusRequest(BaseModel):
    """Task status change request."""

    status: TaskStatus


class ListDocumentsResponse(BaseModel):
    """List documents response."""

    documents: list[Document]


class ListTasksResponse(BaseModel):
    """List tasks response."""

    tasks: list[Task]


class ViewersResponse(BaseModel):
    """Resolved viewers of an artifact."""

    artifact_id: UUID
    viewers: EffectiveViewers


class VisibleArtifactsResponse(BaseModel):
    """Artifacts visible to one roster entry."""

    artifacts: list[ArtifactVisibility]


# ============================================================================
# Health
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
