"""REST API router."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from eventdesk.api.deps import get_actor, get_engine, get_tab_gate, verify_api_key
from eventdesk.api.schemas import (
    AddContractorRequest,
    AddMemberRequest,
    AssignedTasksResponse,
    AssignRequest,
    CreateDocumentRequest,
    CreateEventRequest,
    CreateTaskRequest,
    HealthResponse,
    ListDocumentsResponse,
    ListTasksResponse,
    RemovalCheckResponse,
    RosterResponse,
    StatusHistoryResponse,
    TabActivationResponse,
    TabsResponse,
    TaskStatusRequest,
    TransitionRequest,
    UpdateSharingRequest,
    ViewersResponse,
    VisibleArtifactsResponse,
)
from eventdesk.engine import (
    EventDeskEngine,
    EventDeskError,
    NotFound,
    RemovalBlocked,
    StorageFailure,
    TabGate,
    Unauthorized,
    ValidationFailed,
)
from eventdesk.models import (
    Actor,
    ArtifactKind,
    Contractor,
    Document,
    Event,
    Roster,
    RosterMember,
    TabId,
    Task,
)
from eventdesk.observability.metrics import metrics

router = APIRouter(prefix="/v1", dependencies=[Depends(verify_api_key)])


def _http_error(e: EventDeskError) -> HTTPException:
    """Map an engine error onto an HTTP error response."""
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=e.message)
    if isinstance(e, Unauthorized):
        return HTTPException(status_code=403, detail=e.message)
    if isinstance(e, ValidationFailed):
        return HTTPException(status_code=422, detail=e.message)
    if isinstance(e, RemovalBlocked):
        return HTTPException(
            status_code=409,
            detail={
                "message": e.message,
                "reason": e.reason.value,
                "blocking_task_ids": [str(t.task_id) for t in e.blocking_tasks],
            },
        )
    if isinstance(e, StorageFailure):
        return HTTPException(status_code=503, detail=e.message)
    return HTTPException(status_code=400, detail=e.message)


def _roster_response(roster: Roster) -> RosterResponse:
    return RosterResponse(
        event_id=roster.event_id,
        team_members=roster.team_members,
        contractors=roster.contractors,
    )


# ============================================================================
# Health
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version="0.1.0")


@router.get("/metrics")
async def get_metrics():
    """In-process counters and timings."""
    return metrics.snapshot()


# ============================================================================
# Events & status
# ============================================================================


@router.post("/events", response_model=Event, status_code=201)
async def create_event(
    request: CreateEventRequest,
    engine: EventDeskEngine = Depends(get_engine),
    actor: Actor = Depends(get_actor),
):
    """Create a new event in draft status."""
    try:
        return await engine.create_event(
            title=request.title,
            created_by=actor,
            description=request.description,
            event_date=request.event_date,
            creator_name=request.creator_name,
            register_creator=request.register_creator,
        )
    except EventDeskError as e:
        raise _http_error(e)


@router.get("/events/{event_id}", response_model=Event)
async def get_event(
    event_id: UUID,
    engine: EventDeskEngine = Depends(get_engine),
):
    """Get an event by ID."""
    try:
        return await engine.get_event(event_id)
    except EventDeskError as e:
        raise _http_error(e)


@router.post("/events/{event_id}/status", response_model=Event)
async def update_event_status(
    event_id: UUID,
    request: TransitionRequest,
    engine: EventDeskEngine = Depends(get_engine),
    actor: Actor = Depends(get_actor),
):
    """Change an event's status (owner only)."""
    try:
        return await engine.transition(
            event_id=event_id,
            target_status=request.status,
            actor=actor,
            reason=request.reason,
        )
    except EventDeskError as e:
        raise _http_error(e)


@router.get("/events/{event_id}/status/history", response_model=StatusHistoryResponse)
async def get_status_history(
    event_id: UUID,
    engine: EventDeskEngine = Depends(get_engine),
):
    """Status history, oldest first."""
    try:
        entries = await engine.get_status_history(event_id)
    except EventDeskError as e:
        raise _http_error(e)
    return StatusHistoryResponse(event_id=event_id, entries=entries)


@router.get("/events/{event_id}/tabs", response_model=TabsResponse)
async def get_tabs(
    event_id: UUID,
    engine: EventDeskEngine = Depends(get_engine),
):
    """Tabs reachable for the event's current status."""
    try:
        event = await engine.get_event(event_id)
        tabs = await engine.get_reachable_tabs(event_id)
    except EventDeskError as e:
        raise _http_error(e)
    return TabsResponse(
        event_id=event_id,
        status=event.status,
        tabs=[tab for tab in TabId if tab in tabs],
    )


@router.post("/events/{event_id}/tabs/{tab}/activate", response_model=TabActivationResponse)
async def activate_tab(
    event_id: UUID,
    tab: TabId,
    engine: EventDeskEngine = Depends(get_engine),
    gate: TabGate = Depends(get_tab_gate),
):
    """
    Request a tab.

    Locked tabs answer 423. ``notify`` in the error body is false for
    repeats inside the debounce window so clients show one notice.
    """
    try:
        decision = await engine.request_tab(event_id, tab, gate)
    except EventDeskError as e:
        raise _http_error(e)

    if not decision.allowed:
        raise HTTPException(
            status_code=423,
            detail={
                "message": decision.message,
                "tab": decision.tab.value,
                "notify": decision.notify,
            },
        )
    return TabActivationResponse(event_id=event_id, tab=decision.tab, allowed=True)


# ============================================================================
# Roster
# ============================================================================


@router.get("/events/{event_id}/roster", response_model=RosterResponse)
async def list_roster(
    event_id: UUID,
    engine: EventDeskEngine = Depends(get_engine),
):
    """Team members (creator first) and contractors."""
    try:
        roster = await engine.list_roster(event_id)
    except EventDeskError as e:
        raise _http_error(e)
    return _roster_response(roster)


@router.post("/events/{event_id}/roster/members", response_model=RosterMember, status_code=201)
async def add_roster_member(
    event_id: UUID,
    request: AddMemberRequest,
    engine: EventDeskEngine = Depends(get_engine),
    actor: Actor = Depends(get_actor),
):
    """Add a team member."""
    try:
        return await engine.add_roster_member(
            event_id=event_id,
            actor=actor,
            person_id=request.person_id,
            name=request.name,
            role=request.role,
            is_creator=request.is_creator,
            status=request.status,
        )
    except EventDeskError as e:
        raise _http_error(e)


@router.delete("/events/{event_id}/roster/members/{member_id}", response_model=RosterResponse)
async def remove_roster_member(
    event_id: UUID,
    member_id: UUID,
    override: bool = Query(False, description="Remove despite outstanding task assignments"),
    engine: EventDeskEngine = Depends(get_engine),
    actor: Actor = Depends(get_actor),
):
    """Remove a team member. The creator can never be removed."""
    try:
        roster = await engine.remove_roster_member(
            event_id=event_id,
            member_id=member_id,
            actor=actor,
            override=override,
        )
    except EventDeskError as e:
        raise _http_error(e)
    return _roster_response(roster)


@router.get(
    "/events/{event_id}/roster/members/{member_id}/removal-check",
    response_model=RemovalCheckResponse,
)
async def check_removal_safety(
    event_id: UUID,
    member_id: UUID,
    engine: EventDeskEngine = Depends(get_engine),
):
    """Whether a team member can be removed without orphaning tasks."""
    try:
        check = await engine.check_removal_safety(event_id, member_id)
    except EventDeskError as e:
        raise _http_error(e)
    return RemovalCheckResponse(
        safe=check.safe,
        reason=check.reason,
        blocking_task_ids=[t.task_id for t in check.blocking_tasks],
    )


@router.get(
    "/events/{event_id}/roster/members/{member_id}/tasks",
    response_model=AssignedTasksResponse,
)
async def get_assigned_tasks(
    event_id: UUID,
    member_id: UUID,
    engine: EventDeskEngine = Depends(get_engine),
):
    """Tasks directly assigned to a team member."""
    try:
        tasks = await engine.get_assigned_tasks(event_id, member_id)
    except EventDeskError as e:
        raise _http_error(e)
    return AssignedTasksResponse(member_id=member_id, tasks=tasks)


@router.post("/events/{event_id}/roster/contractors", response_model=Contractor, status_code=201)
async def add_contractor(
    event_id: UUID,
    request: AddContractorRequest,
    engine: EventDeskEngine = Depends(get_engine),
    actor: Actor = Depends(get_actor),
):
    """Add a contractor."""
    try:
        return await engine.add_contractor(
            event_id=event_id,
            actor=actor,
            company_name=request.company_name,
            status=request.status,
        )
    except EventDeskError as e:
        raise _http_error(e)


@router.get(
    "/events/{event_id}/roster/contractors/{contractor_id}/removal-check",
    response_model=RemovalCheckResponse,
)
async def check_contractor_removal_safety(
    event_id: UUID,
    contractor_id: UUID,
    engine: EventDeskEngine = Depends(get_engine),
):
    """Whether a contractor can be removed without orphaning tasks."""
    try:
        check = await engine.check_contractor_removal_safety(event_id, contractor_id)
    except EventDeskError as e:
        raise _http_error(e)
    return RemovalCheckResponse(
        safe=check.safe,
        reason=check.reason,
        blocking_task_ids=[t.task_id for t in check.blocking_tasks],
    )


@router.delete(
    "/events/{event_id}/roster/contractors/{contractor_id}",
    response_model=RosterResponse,
)
async def remove_contractor(
    event_id: UUID,
    contractor_id: UUID,
    override: bool = Query(False, description="Remove despite outstanding task assignments"),
    engine: EventDeskEngine = Depends(get_engine),
    actor: Actor = Depends(get_actor),
):
    """Remove a contractor."""
    try:
        roster = await engine.remove_contractor(
            event_id=event_id,
            contractor_id=contractor_id,
            actor=actor,
            override=override,
        )
    except EventDeskError as e:
        raise _http_error(e)
    return _roster_response(roster)


# ============================================================================
# Visibility
# ============================================================================


@router.get("/events/{event_id}/visible", response_model=VisibleArtifactsResponse)
async def list_visible_artifacts(
    event_id: UUID,
    member_id: Optional[UUID] = Query(None),
    contractor_id: Optional[UUID] = Query(None),
    engine: EventDeskEngine = Depends(get_engine),
):
    """Documents and tasks visible to one team member or contractor."""
    try:
        artifacts = await engine.list_visible_artifacts(
            event_id, member_id=member_id, contractor_id=contractor_id
        )
    except EventDeskError as e:
        raise _http_error(e)
    return VisibleArtifactsResponse(artifacts=artifacts)


# ============================================================================
# Documents & tasks
# ============================================================================


@router.get("/events/{event_id}/documents", response_model=ListDocumentsResponse)
async def list_documents(
    event_id: UUID,
    limit: Optional[int] = Query(None, ge=1, le=200),
    engine: EventDeskEngine = Depends(get_engine),
):
    """List an event's documents."""
    try:
        documents = await engine.list_documents(event_id, limit=limit)
    except EventDeskError as e:
        raise _http_error(e)
    return ListDocumentsResponse(documents=documents)


@router.post("/events/{event_id}/documents", response_model=Document, status_code=201)
async def create_document(
    event_id: UUID,
    request: CreateDocumentRequest,
    engine: EventDeskEngine = Depends(get_engine),
    actor: Actor = Depends(get_actor),
):
    """Register an uploaded document."""
    try:
        return await engine.create_document(
            event_id=event_id,
            actor=actor,
            name=request.name,
            file_path=request.file_path,
            file_size=request.file_size,
            mime_type=request.mime_type,
            sharing_spec=request.sharing,
        )
    except EventDeskError as e:
        raise _http_error(e)


@router.get("/events/{event_id}/tasks", response_model=ListTasksResponse)
async def list_tasks(
    event_id: UUID,
    status: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=200),
    engine: EventDeskEngine = Depends(get_engine),
):
    """List an event's tasks, optionally filtered by status."""
    try:
        tasks = await engine.list_tasks(event_id, status=status, limit=limit)
    except EventDeskError as e:
        raise _http_error(e)
    return ListTasksResponse(tasks=tasks)


@router.post("/events/{event_id}/tasks", response_model=Task, status_code=201)
async def create_task(
    event_id: UUID,
    request: CreateTaskRequest,
    engine: EventDeskEngine = Depends(get_engine),
    actor: Actor = Depends(get_actor),
):
    """Create a task."""
    try:
        return await engine.create_task(
            event_id=event_id,
            actor=actor,
            title=request.title,
            description=request.description,
            due_date=request.due_date,
            sharing_spec=request.sharing,
        )
    except EventDeskError as e:
        raise _http_error(e)


@router.post("/events/{event_id}/tasks/{task_id}/status", response_model=Task)
async def update_task_status(
    event_id: UUID,
    task_id: UUID,
    request: TaskStatusRequest,
    engine: EventDeskEngine = Depends(get_engine),
    actor: Actor = Depends(get_actor),
):
    """Set a task's status (owner or a current assignee)."""
    try:
        return await engine.update_task_status(
            event_id=event_id,
            task_id=task_id,
            status=request.status,
            actor=actor,
        )
    except EventDeskError as e:
        raise _http_error(e)


def _register_artifact_routes(collection: str, kind: ArtifactKind, model: type) -> None:
    """Per-artifact routes under /events/{event_id}/<collection>/{artifact_id}."""
    path = f"/events/{{event_id}}/{collection}/{{artifact_id}}"

    @router.get(path, response_model=model, name=f"get_{kind.value}")
    async def get_artifact(
        event_id: UUID,
        artifact_id: UUID,
        engine: EventDeskEngine = Depends(get_engine),
    ):
        try:
            return await engine.get_artifact(event_id, kind, artifact_id)
        except EventDeskError as e:
            raise _http_error(e)

    @router.put(f"{path}/sharing", response_model=model, name=f"update_{kind.value}_sharing")
    async def update_sharing(
        event_id: UUID,
        artifact_id: UUID,
        request: UpdateSharingRequest,
        engine: EventDeskEngine = Depends(get_engine),
        actor: Actor = Depends(get_actor),
    ):
        """Replace an artifact's sharing settings."""
        try:
            return await engine.update_artifact_sharing(
                event_id=event_id,
                kind=kind,
                artifact_id=artifact_id,
                sharing_spec=request.sharing,
                actor=actor,
            )
        except EventDeskError as e:
            raise _http_error(e)

    @router.post(f"{path}/assign", response_model=model, name=f"assign_{kind.value}")
    async def assign_artifact(
        event_id: UUID,
        artifact_id: UUID,
        request: AssignRequest,
        engine: EventDeskEngine = Depends(get_engine),
        actor: Actor = Depends(get_actor),
    ):
        """Assign an artifact to explicit team members and contractors."""
        try:
            return await engine.assign(
                event_id=event_id,
                kind=kind,
                artifact_id=artifact_id,
                team_member_ids=request.team_member_ids,
                contractor_ids=request.contractor_ids,
                actor=actor,
            )
        except EventDeskError as e:
            raise _http_error(e)

    @router.get(f"{path}/viewers", response_model=ViewersResponse, name=f"{kind.value}_viewers")
    async def get_viewers(
        event_id: UUID,
        artifact_id: UUID,
        engine: EventDeskEngine = Depends(get_engine),
    ):
        """Effective viewers resolved against the live roster."""
        try:
            viewers = await engine.resolve_viewers(event_id, kind, artifact_id)
        except EventDeskError as e:
            raise _http_error(e)
        return ViewersResponse(artifact_id=artifact_id, viewers=viewers)

    @router.delete(path, status_code=204, name=f"delete_{kind.value}")
    async def delete_artifact(
        event_id: UUID,
        artifact_id: UUID,
        engine: EventDeskEngine = Depends(get_engine),
        actor: Actor = Depends(get_actor),
    ):
        try:
            await engine.delete_artifact(event_id, kind, artifact_id, actor)
        except EventDeskError as e:
            raise _http_error(e)
        return Response(status_code=204)


_register_artifact_routes("documents", ArtifactKind.DOCUMENT, Document)
_register_artifact_routes("tasks", ArtifactKind.TASK, Task)
