"""EventDesk core engine - canonical operations.

One engine instance wraps one database session. Every mutation runs inside a
SAVEPOINT so a storage failure leaves no partial state behind, and every
mutation returns the updated entity so callers can merge instead of
re-fetching.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Iterable, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.config import settings
from eventdesk.db.repositories import (
    DocumentRepository,
    EventRepository,
    RosterRepository,
    StatusHistoryRepository,
    TaskRepository,
)
from eventdesk.engine import sharing, tracker
from eventdesk.engine.errors import (
    NotFound,
    RemovalBlocked,
    StorageFailure,
    Unauthorized,
    ValidationFailed,
)
from eventdesk.engine.gating import TabDecision, TabGate, reachable_tabs
from eventdesk.engine.tracker import RemovalCheck
from eventdesk.models import (
    Actor,
    Artifact,
    ArtifactKind,
    ArtifactVisibility,
    Contractor,
    ContractorStatus,
    Document,
    EffectiveViewers,
    Event,
    EventStatus,
    MemberStatus,
    RemovalReason,
    Roster,
    RosterKind,
    RosterMember,
    SharingSpec,
    StatusHistoryEntry,
    TabId,
    Task,
    TaskStatus,
)
from eventdesk.observability.metrics import metrics

logger = logging.getLogger(__name__)

CREATOR_ROLE = "Event Creator"


def _parse_enum(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationFailed(
            f"Unknown {field} '{value}' (expected one of: {allowed})", field=field
        ) from None


def _require_text(value: Optional[str], field: str, max_length: Optional[int] = None) -> str:
    if value is None or not value.strip():
        raise ValidationFailed(f"{field} is required", field=field)
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationFailed(f"{field} is too long (max {max_length})", field=field)
    return value


class EventDeskEngine:
    """Core engine implementing canonical EventDesk operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.events = EventRepository(session)
        self.history = StatusHistoryRepository(session)
        self.roster = RosterRepository(session)
        self.documents = DocumentRepository(session)
        self.tasks = TaskRepository(session)

    @asynccontextmanager
    async def _atomic(
        self, operation: str, conflict: Optional[ValidationFailed] = None
    ) -> AsyncIterator[None]:
        """Run a mutation in a SAVEPOINT; storage errors become StorageFailure.

        When ``conflict`` is given, a constraint violation raises it instead.
        """
        try:
            with metrics.timed(f"engine.{operation}"):
                async with self.session.begin_nested():
                    yield
        except SQLAlchemyError as e:
            if conflict is not None and isinstance(e, IntegrityError):
                logger.warning(f"Constraint violation during {operation}: {e}")
                raise conflict from e
            metrics.inc_counter("storage.failure")
            logger.error(f"Storage failure during {operation}: {e}")
            raise StorageFailure(operation, e) from e

    async def _read(self, operation: str, coro):
        try:
            return await coro
        except SQLAlchemyError as e:
            metrics.inc_counter("storage.failure")
            logger.error(f"Storage failure during {operation}: {e}")
            raise StorageFailure(operation, e) from e

    async def _require_event(self, event_id: UUID) -> Event:
        event = await self._read("get_event", self.events.get(event_id))
        if not event:
            raise NotFound("Event", event_id)
        return event

    async def _require_owner(self, event_id: UUID, actor: Actor, action: str) -> Event:
        event = await self._require_event(event_id)
        if not event.is_owner(actor.id):
            raise Unauthorized(
                f"Actor {actor.id} is not authorized to {action} for event {event_id}"
            )
        return event

    async def _current_roster(self, event_id: UUID) -> Roster:
        return await self._read("list_roster", self.roster.get_roster(event_id))

    # =========================================================================
    # Events and status transitions
    # =========================================================================

    async def create_event(
        self,
        title: str,
        created_by: Actor,
        description: Optional[str] = None,
        event_date: Optional[datetime] = None,
        creator_name: Optional[str] = None,
        register_creator: bool = True,
    ) -> Event:
        """Create an event in draft status.

        With ``register_creator`` the owner is added to the roster as the
        creator member in the same savepoint.
        """
        title = _require_text(title, "title", max_length=200)

        async with self._atomic("create_event"):
            event = await self.events.create(
                title=title,
                created_by=created_by.id,
                description=description,
                event_date=event_date,
            )
            if register_creator:
                await self.roster.add_member(
                    event_id=event.event_id,
                    person_id=created_by.id,
                    name=creator_name or created_by.display_name or created_by.id,
                    role=CREATOR_ROLE,
                    is_creator=True,
                )

        logger.info(f"Event created: {event.event_id} by {created_by.id}")
        return event

    async def get_event(self, event_id: UUID) -> Event:
        return await self._require_event(event_id)

    async def transition(
        self,
        event_id: UUID,
        target_status: EventStatus | str,
        actor: Actor,
        reason: Optional[str] = None,
    ) -> Event:
        """Move an event to ``target_status`` and record it in the history.

        Any target is accepted from any status, including terminal ones. There
        is no stale-status precondition: concurrent transitions are
        last-writer-wins.
        """
        target = _parse_enum(EventStatus, target_status, "status")
        event = await self._require_owner(event_id, actor, "change status")
        previous = event.status

        async with self._atomic("transition"):
            updated = await self.events.update_status(event_id, target)
            history_previous = await self._last_recorded_status(event_id)
            await self.history.append(
                event_id=event_id,
                previous_status=history_previous,
                new_status=target,
                changed_by=actor.id,
                reason=reason,
            )

        metrics.inc_counter("event.transition")
        logger.info(
            f"Event {event_id} status {previous.value} -> {target.value} by {actor.id}"
        )
        return updated

    async def _last_recorded_status(self, event_id: UUID) -> Optional[EventStatus]:
        """Status recorded by the newest history entry; None before the first."""
        entries = await self.history.list(event_id)
        return entries[-1].new_status if entries else None

    async def get_status_history(self, event_id: UUID) -> list[StatusHistoryEntry]:
        await self._require_event(event_id)
        return await self._read("get_status_history", self.history.list(event_id))

    async def get_reachable_tabs(self, event_id: UUID) -> frozenset[TabId]:
        event = await self._require_event(event_id)
        return reachable_tabs(event.status)

    async def request_tab(self, event_id: UUID, tab: TabId | str, gate: TabGate) -> TabDecision:
        """Ask the gate whether `tab` may be activated for the event's current status."""
        tab_id = _parse_enum(TabId, tab, "tab")
        event = await self._require_event(event_id)
        return gate.request(event_id, event.status, tab_id)

    # =========================================================================
    # Roster
    # =========================================================================

    async def list_roster(self, event_id: UUID) -> Roster:
        await self._require_event(event_id)
        return await self._current_roster(event_id)

    async def add_roster_member(
        self,
        event_id: UUID,
        actor: Actor,
        person_id: str,
        name: str,
        role: str,
        is_creator: bool = False,
        status: MemberStatus | str = MemberStatus.ACTIVE,
    ) -> RosterMember:
        """Add a team member. At most one creator, and it must be the owner."""
        event = await self._require_owner(event_id, actor, "manage the roster")
        person_id = _require_text(person_id, "person_id")
        name = _require_text(name, "name")
        role = _require_text(role, "role")
        member_status = _parse_enum(MemberStatus, status, "member status")

        roster = await self._current_roster(event_id)
        if roster.member_ids_for_person(person_id):
            raise ValidationFailed(
                f"Person {person_id} is already on the roster of event {event_id}",
                field="person_id",
            )
        if is_creator:
            if roster.creator is not None:
                raise ValidationFailed(
                    f"Event {event_id} already has a creator member", field="is_creator"
                )
            if person_id != event.created_by:
                raise ValidationFailed(
                    "Only the event owner can be registered as the creator member",
                    field="is_creator",
                )

        conflict = ValidationFailed(
            f"Roster of event {event_id} already has this person or a creator member",
            field="is_creator" if is_creator else "person_id",
        )
        async with self._atomic("add_roster_member", conflict):
            member = await self.roster.add_member(
                event_id=event_id,
                person_id=person_id,
                name=name,
                role=role,
                is_creator=is_creator,
                status=member_status,
            )

        logger.info(f"Roster member {member.member_id} added to event {event_id}")
        return member

    async def add_contractor(
        self,
        event_id: UUID,
        actor: Actor,
        company_name: str,
        status: ContractorStatus | str = ContractorStatus.PENDING,
    ) -> Contractor:
        await self._require_owner(event_id, actor, "manage the roster")
        company_name = _require_text(company_name, "company_name")
        contractor_status = _parse_enum(ContractorStatus, status, "contractor status")

        async with self._atomic("add_contractor"):
            contractor = await self.roster.add_contractor(
                event_id=event_id,
                company_name=company_name,
                status=contractor_status,
            )

        logger.info(f"Contractor {contractor.contractor_id} added to event {event_id}")
        return contractor

    async def get_assigned_tasks(self, event_id: UUID, member_id: UUID) -> list[Task]:
        """Tasks directly assigned to a team member who is still on the roster."""
        await self._require_event(event_id)
        roster = await self._current_roster(event_id)
        tasks = await self._read("list_tasks", self.tasks.list(event_id))
        return tracker.assigned_tasks(tasks, roster, member_id, RosterKind.TEAM)

    async def check_removal_safety(self, event_id: UUID, member_id: UUID) -> RemovalCheck:
        await self._require_event(event_id)
        roster = await self._current_roster(event_id)
        tasks = await self._read("list_tasks", self.tasks.list(event_id))
        return tracker.check_member_removal(roster, member_id, tasks)

    async def remove_roster_member(
        self,
        event_id: UUID,
        member_id: UUID,
        actor: Actor,
        override: bool = False,
    ) -> Roster:
        """Remove a team member and return the updated roster.

        The creator can never be removed. Outstanding direct task assignments
        block removal unless ``override`` is set; overridden tasks keep the
        now-dangling id, which resolution drops.
        """
        await self._require_owner(event_id, actor, "manage the roster")
        check = await self.check_removal_safety(event_id, member_id)
        if not check.safe:
            if check.reason == RemovalReason.IS_CREATOR or not override:
                metrics.inc_counter("roster.removal_blocked")
                logger.info(
                    f"Removal of member {member_id} from event {event_id} blocked: "
                    f"{check.reason.value}"
                )
                raise RemovalBlocked(member_id, check.reason, check.blocking_tasks)
            logger.warning(
                f"Removing member {member_id} from event {event_id} with "
                f"{len(check.blocking_tasks)} outstanding task(s) (override)"
            )

        async with self._atomic("remove_roster_member"):
            removed = await self.roster.remove_member(event_id, member_id)
        if not removed:
            raise NotFound("Roster member", member_id)
        return await self._current_roster(event_id)

    async def check_contractor_removal_safety(
        self, event_id: UUID, contractor_id: UUID
    ) -> RemovalCheck:
        await self._require_event(event_id)
        roster = await self._current_roster(event_id)
        tasks = await self._read("list_tasks", self.tasks.list(event_id))
        return tracker.check_contractor_removal(roster, contractor_id, tasks)

    async def remove_contractor(
        self,
        event_id: UUID,
        contractor_id: UUID,
        actor: Actor,
        override: bool = False,
    ) -> Roster:
        await self._require_owner(event_id, actor, "manage the roster")
        check = await self.check_contractor_removal_safety(event_id, contractor_id)
        if not check.safe and not override:
            metrics.inc_counter("roster.removal_blocked")
            raise RemovalBlocked(contractor_id, check.reason, check.blocking_tasks)

        async with self._atomic("remove_contractor"):
            removed = await self.roster.remove_contractor(event_id, contractor_id)
        if not removed:
            raise NotFound("Contractor", contractor_id)
        return await self._current_roster(event_id)

    # =========================================================================
    # Artifacts
    # =========================================================================

    async def list_documents(self, event_id: UUID, limit: Optional[int] = None) -> list[Document]:
        await self._require_event(event_id)
        limit = min(limit or settings.default_list_limit, settings.max_list_limit)
        return await self._read("list_documents", self.documents.list(event_id, limit=limit))

    async def list_tasks(
        self,
        event_id: UUID,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Task]:
        await self._require_event(event_id)
        task_status = _parse_enum(TaskStatus, status, "task status") if status else None
        limit = min(limit or settings.default_list_limit, settings.max_list_limit)
        return await self._read(
            "list_tasks", self.tasks.list(event_id, status=task_status, limit=limit)
        )

    async def get_artifact(self, event_id: UUID, kind: ArtifactKind, artifact_id: UUID) -> Artifact:
        kind = _parse_enum(ArtifactKind, kind, "artifact kind")
        if kind == ArtifactKind.DOCUMENT:
            artifact = await self._read("get_document", self.documents.get(event_id, artifact_id))
        else:
            artifact = await self._read("get_task", self.tasks.get(event_id, artifact_id))
        if not artifact:
            raise NotFound(kind.value.capitalize(), artifact_id)
        return artifact

    async def create_document(
        self,
        event_id: UUID,
        actor: Actor,
        name: str,
        file_path: str,
        file_size: int,
        mime_type: str,
        sharing_spec: Optional[SharingSpec] = None,
    ) -> Document:
        await self._require_owner(event_id, actor, "upload documents")
        name = _require_text(name, "name")
        file_path = _require_text(file_path, "file_path")
        if file_size <= 0:
            raise ValidationFailed("file_size must be positive", field="file_size")
        if file_size > settings.max_document_bytes:
            raise ValidationFailed(
                f"Document exceeds the {settings.max_document_bytes} byte limit",
                field="file_size",
            )
        if mime_type not in settings.allowed_document_mime_types:
            raise ValidationFailed(f"Unsupported document type: {mime_type}", field="mime_type")

        roster = await self._current_roster(event_id)
        spec = tracker.sanitize_sharing(sharing_spec or SharingSpec.private(), roster)

        async with self._atomic("create_document"):
            document = await self.documents.create(
                event_id=event_id,
                name=name,
                file_path=file_path,
                file_size=file_size,
                mime_type=mime_type,
                sharing=spec,
                uploaded_by=actor.id,
            )

        logger.info(f"Document {document.document_id} created for event {event_id}")
        return document

    async def create_task(
        self,
        event_id: UUID,
        actor: Actor,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        sharing_spec: Optional[SharingSpec] = None,
    ) -> Task:
        """Create a task. The owner and anyone on the event's team roster may."""
        event = await self._require_event(event_id)
        title = _require_text(title, "title", max_length=255)

        roster = await self._current_roster(event_id)
        if not event.is_owner(actor.id) and not roster.member_ids_for_person(actor.id):
            raise Unauthorized(
                f"Actor {actor.id} is not authorized to create tasks for event {event_id}"
            )
        spec = tracker.sanitize_sharing(sharing_spec or SharingSpec.private(), roster)

        async with self._atomic("create_task"):
            task = await self.tasks.create(
                event_id=event_id,
                title=title,
                created_by=actor.id,
                sharing=spec,
                description=description,
                due_date=due_date,
            )

        logger.info(f"Task {task.task_id} created for event {event_id}")
        return task

    async def update_artifact_sharing(
        self,
        event_id: UUID,
        kind: ArtifactKind,
        artifact_id: UUID,
        sharing_spec: SharingSpec,
        actor: Actor,
    ) -> Artifact:
        """Replace an artifact's sharing; unknown selected ids are dropped."""
        await self._require_owner(event_id, actor, "change sharing")
        kind = _parse_enum(ArtifactKind, kind, "artifact kind")
        await self.get_artifact(event_id, kind, artifact_id)

        roster = await self._current_roster(event_id)
        spec = tracker.sanitize_sharing(sharing_spec, roster)

        async with self._atomic("update_artifact"):
            if kind == ArtifactKind.DOCUMENT:
                updated = await self.documents.update_sharing(event_id, artifact_id, spec)
            else:
                updated = await self.tasks.update_sharing(event_id, artifact_id, spec)
        return updated

    async def assign(
        self,
        event_id: UUID,
        kind: ArtifactKind,
        artifact_id: UUID,
        team_member_ids: Iterable[UUID],
        contractor_ids: Iterable[UUID],
        actor: Actor,
    ) -> Artifact:
        """Explicitly assign an artifact to roster ids (unknown ids dropped)."""
        await self._require_owner(event_id, actor, "assign artifacts")
        kind = _parse_enum(ArtifactKind, kind, "artifact kind")
        await self.get_artifact(event_id, kind, artifact_id)

        roster = await self._current_roster(event_id)
        spec = tracker.build_assignment(team_member_ids, contractor_ids, roster)

        async with self._atomic("assign"):
            if kind == ArtifactKind.DOCUMENT:
                updated = await self.documents.update_sharing(event_id, artifact_id, spec)
            else:
                updated = await self.tasks.update_sharing(event_id, artifact_id, spec)
        return updated

    async def update_task_status(
        self,
        event_id: UUID,
        task_id: UUID,
        status: TaskStatus | str,
        actor: Actor,
    ) -> Task:
        """Set a task's status. Any status may follow any other.

        Allowed for the event owner and for team members the task currently
        resolves to.
        """
        new_status = _parse_enum(TaskStatus, status, "task status")
        event = await self._require_event(event_id)
        task = await self.get_artifact(event_id, ArtifactKind.TASK, task_id)

        if not event.is_owner(actor.id):
            roster = await self._current_roster(event_id)
            viewers = sharing.resolve(task.sharing, roster)
            if not roster.member_ids_for_person(actor.id) & viewers.team_member_ids:
                raise Unauthorized(
                    f"Actor {actor.id} is not assigned to task {task_id}"
                )

        async with self._atomic("update_task_status"):
            updated = await self.tasks.update_status(event_id, task_id, new_status)
        return updated

    async def delete_artifact(
        self,
        event_id: UUID,
        kind: ArtifactKind,
        artifact_id: UUID,
        actor: Actor,
    ) -> None:
        await self._require_owner(event_id, actor, "delete artifacts")
        kind = _parse_enum(ArtifactKind, kind, "artifact kind")

        async with self._atomic("delete_artifact"):
            if kind == ArtifactKind.DOCUMENT:
                deleted = await self.documents.delete(event_id, artifact_id)
            else:
                deleted = await self.tasks.delete(event_id, artifact_id)
        if not deleted:
            raise NotFound(kind.value.capitalize(), artifact_id)
        logger.info(f"{kind.value} {artifact_id} deleted from event {event_id}")

    # =========================================================================
    # Visibility
    # =========================================================================

    async def resolve_viewers(
        self, event_id: UUID, kind: ArtifactKind, artifact_id: UUID
    ) -> EffectiveViewers:
        """Effective viewers of an artifact against the live roster."""
        artifact = await self.get_artifact(event_id, kind, artifact_id)
        roster = await self._current_roster(event_id)
        return sharing.resolve(artifact.sharing, roster)

    async def list_visible_artifacts(
        self,
        event_id: UUID,
        member_id: Optional[UUID] = None,
        contractor_id: Optional[UUID] = None,
    ) -> list[ArtifactVisibility]:
        """Documents and tasks visible to one team member or contractor."""
        if (member_id is None) == (contractor_id is None):
            raise ValidationFailed("Specify exactly one of member_id or contractor_id")
        await self._require_event(event_id)
        roster = await self._current_roster(event_id)
        documents = await self._read("list_documents", self.documents.list(event_id))
        tasks = await self._read("list_tasks", self.tasks.list(event_id))

        visible = []
        for artifact in [*documents, *tasks]:
            if member_id is not None:
                seen = sharing.visible_to_member(artifact.sharing, roster, member_id)
            else:
                seen = sharing.visible_to_contractor(artifact.sharing, roster, contractor_id)
            if seen:
                visible.append(
                    ArtifactVisibility(
                        kind=artifact.kind,
                        artifact_id=artifact.artifact_id,
                        viewers=sharing.resolve(artifact.sharing, roster),
                    )
                )
        return visible
