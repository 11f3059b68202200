"""Database repositories for EventDesk entities.

This is the event store adapter: every read goes to the database, nothing is
cached between calls.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.db.tables import (
    ContractorTable,
    DocumentTable,
    EventTable,
    RosterMemberTable,
    StatusHistoryTable,
    TaskTable,
)
from eventdesk.models import (
    Contractor,
    ContractorStatus,
    Document,
    Event,
    EventStatus,
    MemberStatus,
    Roster,
    RosterMember,
    ShareSelected,
    SharingMode,
    SharingSpec,
    StatusHistoryEntry,
    Task,
    TaskStatus,
    axis_for_mode,
)
from eventdesk.utils.time import ensure_utc, utc_now


def _sharing_to_columns(spec: SharingSpec) -> dict[str, Any]:
    """Flatten a sharing spec into the mode/id-list column pairs."""
    team_ids = sorted(str(i) for i in spec.team.ids) if isinstance(spec.team, ShareSelected) else []
    contractor_ids = (
        sorted(str(i) for i in spec.contractors.ids)
        if isinstance(spec.contractors, ShareSelected)
        else []
    )
    return {
        "team_sharing": SharingMode(spec.team.mode),
        "team_member_ids": team_ids,
        "contractor_sharing": SharingMode(spec.contractors.mode),
        "contractor_ids": contractor_ids,
    }


def _columns_to_axis(mode: SharingMode, ids: Optional[list[str]]):
    mode = SharingMode(mode)
    if mode == SharingMode.SELECTED:
        return ShareSelected(ids=frozenset(UUID(i) for i in ids or []))
    # Id lists stored next to ALL/NONE are ignored
    return axis_for_mode(mode)


def _columns_to_sharing(row: DocumentTable | TaskTable) -> SharingSpec:
    return SharingSpec(
        team=_columns_to_axis(row.team_sharing, row.team_member_ids),
        contractors=_columns_to_axis(row.contractor_sharing, row.contractor_ids),
    )


class EventRepository:
    """Repository for event records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        title: str,
        created_by: str,
        description: Optional[str] = None,
        event_date: Optional[datetime] = None,
    ) -> Event:
        """Create a new event in draft status."""
        now = utc_now()
        row = EventTable(
            event_id=uuid4(),
            title=title,
            description=description,
            event_date=event_date,
            created_by=created_by,
            status=EventStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        await self.session.flush()
        return self._row_to_model(row)

    async def get(self, event_id: UUID) -> Optional[Event]:
        """Get an event by ID."""
        result = await self.session.execute(
            select(EventTable)
            .where(EventTable.event_id == event_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return self._row_to_model(row) if row else None

    async def update_status(self, event_id: UUID, status: EventStatus) -> Optional[Event]:
        """Write a new status. Only the transition engine calls this."""
        await self.session.execute(
            update(EventTable)
            .where(EventTable.event_id == event_id)
            .values(status=status, updated_at=utc_now())
        )
        return await self.get(event_id)

    def _row_to_model(self, row: EventTable) -> Event:
        return Event(
            event_id=row.event_id,
            title=row.title,
            description=row.description,
            event_date=ensure_utc(row.event_date),
            created_by=row.created_by,
            status=EventStatus(row.status),
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
        )


class StatusHistoryRepository:
    """Repository for the append-only status history log."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(
        self,
        event_id: UUID,
        previous_status: Optional[EventStatus],
        new_status: EventStatus,
        changed_by: str,
        reason: Optional[str] = None,
    ) -> StatusHistoryEntry:
        """Append one entry. Sequence numbers start at 1 per event."""
        result = await self.session.execute(
            select(func.max(StatusHistoryTable.sequence)).where(
                StatusHistoryTable.event_id == event_id
            )
        )
        last_sequence = result.scalar_one_or_none() or 0

        row = StatusHistoryTable(
            entry_id=uuid4(),
            event_id=event_id,
            sequence=last_sequence + 1,
            previous_status=previous_status,
            new_status=new_status,
            changed_by=changed_by,
            reason=reason,
            created_at=utc_now(),
        )
        self.session.add(row)
        await self.session.flush()
        return self._row_to_model(row)

    async def list(self, event_id: UUID) -> list[StatusHistoryEntry]:
        """List entries by timestamp, ties broken by insertion order."""
        result = await self.session.execute(
            select(StatusHistoryTable)
            .where(StatusHistoryTable.event_id == event_id)
            .order_by(StatusHistoryTable.created_at, StatusHistoryTable.sequence)
        )
        return [self._row_to_model(r) for r in result.scalars().all()]

    def _row_to_model(self, row: StatusHistoryTable) -> StatusHistoryEntry:
        return StatusHistoryEntry(
            entry_id=row.entry_id,
            event_id=row.event_id,
            sequence=row.sequence,
            previous_status=EventStatus(row.previous_status) if row.previous_status else None,
            new_status=EventStatus(row.new_status),
            changed_by=row.changed_by,
            reason=row.reason,
            timestamp=ensure_utc(row.created_at),
        )


class RosterRepository:
    """Repository for team members and contractors of an event."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_roster(self, event_id: UUID) -> Roster:
        """Read the full roster of an event."""
        members = await self.session.execute(
            select(RosterMemberTable)
            .where(RosterMemberTable.event_id == event_id)
            .order_by(RosterMemberTable.is_creator.desc(), RosterMemberTable.added_at)
        )
        contractors = await self.session.execute(
            select(ContractorTable)
            .where(ContractorTable.event_id == event_id)
            .order_by(ContractorTable.added_at)
        )
        return Roster(
            event_id=event_id,
            team_members=[self._member_to_model(r) for r in members.scalars().all()],
            contractors=[self._contractor_to_model(r) for r in contractors.scalars().all()],
        )

    async def add_member(
        self,
        event_id: UUID,
        person_id: str,
        name: str,
        role: str,
        is_creator: bool = False,
        status: MemberStatus = MemberStatus.ACTIVE,
    ) -> RosterMember:
        row = RosterMemberTable(
            member_id=uuid4(),
            event_id=event_id,
            person_id=person_id,
            name=name,
            role=role,
            is_creator=is_creator,
            status=status,
            added_at=utc_now(),
        )
        self.session.add(row)
        await self.session.flush()
        return self._member_to_model(row)

    async def remove_member(self, event_id: UUID, member_id: UUID) -> bool:
        result = await self.session.execute(
            delete(RosterMemberTable).where(
                RosterMemberTable.event_id == event_id,
                RosterMemberTable.member_id == member_id,
            )
        )
        return result.rowcount > 0

    async def add_contractor(
        self,
        event_id: UUID,
        company_name: str,
        status: ContractorStatus = ContractorStatus.PENDING,
    ) -> Contractor:
        row = ContractorTable(
            contractor_id=uuid4(),
            event_id=event_id,
            company_name=company_name,
            status=status,
            added_at=utc_now(),
        )
        self.session.add(row)
        await self.session.flush()
        return self._contractor_to_model(row)

    async def remove_contractor(self, event_id: UUID, contractor_id: UUID) -> bool:
        result = await self.session.execute(
            delete(ContractorTable).where(
                ContractorTable.event_id == event_id,
                ContractorTable.contractor_id == contractor_id,
            )
        )
        return result.rowcount > 0

    def _member_to_model(self, row: RosterMemberTable) -> RosterMember:
        return RosterMember(
            member_id=row.member_id,
            event_id=row.event_id,
            person_id=row.person_id,
            name=row.name,
            role=row.role,
            is_creator=row.is_creator,
            status=MemberStatus(row.status),
            added_at=ensure_utc(row.added_at),
        )

    def _contractor_to_model(self, row: ContractorTable) -> Contractor:
        return Contractor(
            contractor_id=row.contractor_id,
            event_id=row.event_id,
            company_name=row.company_name,
            status=ContractorStatus(row.status),
            added_at=ensure_utc(row.added_at),
        )


class DocumentRepository:
    """Repository for event documents."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        event_id: UUID,
        name: str,
        file_path: str,
        file_size: int,
        mime_type: str,
        sharing: SharingSpec,
        uploaded_by: Optional[str] = None,
    ) -> Document:
        now = utc_now()
        row = DocumentTable(
            document_id=uuid4(),
            event_id=event_id,
            name=name,
            file_path=file_path,
            file_size=file_size,
            mime_type=mime_type,
            uploaded_by=uploaded_by,
            created_at=now,
            updated_at=now,
            **_sharing_to_columns(sharing),
        )
        self.session.add(row)
        await self.session.flush()
        return self._row_to_model(row)

    async def get(self, event_id: UUID, document_id: UUID) -> Optional[Document]:
        result = await self.session.execute(
            select(DocumentTable)
            .where(
                DocumentTable.event_id == event_id,
                DocumentTable.document_id == document_id,
            )
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return self._row_to_model(row) if row else None

    async def list(self, event_id: UUID, limit: Optional[int] = None) -> list[Document]:
        query = (
            select(DocumentTable)
            .where(DocumentTable.event_id == event_id)
            .order_by(DocumentTable.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return [self._row_to_model(r) for r in result.scalars().all()]

    async def update_sharing(
        self, event_id: UUID, document_id: UUID, sharing: SharingSpec
    ) -> Optional[Document]:
        await self.session.execute(
            update(DocumentTable)
            .where(
                DocumentTable.event_id == event_id,
                DocumentTable.document_id == document_id,
            )
            .values(updated_at=utc_now(), **_sharing_to_columns(sharing))
        )
        return await self.get(event_id, document_id)

    async def delete(self, event_id: UUID, document_id: UUID) -> bool:
        result = await self.session.execute(
            delete(DocumentTable).where(
                DocumentTable.event_id == event_id,
                DocumentTable.document_id == document_id,
            )
        )
        return result.rowcount > 0

    def _row_to_model(self, row: DocumentTable) -> Document:
        return Document(
            document_id=row.document_id,
            event_id=row.event_id,
            name=row.name,
            file_path=row.file_path,
            file_size=row.file_size,
            mime_type=row.mime_type,
            uploaded_by=row.uploaded_by,
            sharing=_columns_to_sharing(row),
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
        )


class TaskRepository:
    """Repository for event tasks."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        event_id: UUID,
        title: str,
        created_by: str,
        sharing: SharingSpec,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        status: TaskStatus = TaskStatus.TODO,
    ) -> Task:
        now = utc_now()
        row = TaskTable(
            task_id=uuid4(),
            event_id=event_id,
            title=title,
            description=description,
            due_date=due_date,
            status=status,
            created_by=created_by,
            created_at=now,
            updated_at=now,
            **_sharing_to_columns(sharing),
        )
        self.session.add(row)
        await self.session.flush()
        return self._row_to_model(row)

    async def get(self, event_id: UUID, task_id: UUID) -> Optional[Task]:
        result = await self.session.execute(
            select(TaskTable)
            .where(TaskTable.event_id == event_id, TaskTable.task_id == task_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return self._row_to_model(row) if row else None

    async def list(
        self,
        event_id: UUID,
        status: Optional[TaskStatus] = None,
        limit: Optional[int] = None,
    ) -> list[Task]:
        query = select(TaskTable).where(TaskTable.event_id == event_id)
        if status:
            query = query.where(TaskTable.status == status)
        query = query.order_by(TaskTable.created_at.desc())
        if limit:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return [self._row_to_model(r) for r in result.scalars().all()]

    async def update_sharing(
        self, event_id: UUID, task_id: UUID, sharing: SharingSpec
    ) -> Optional[Task]:
        await self.session.execute(
            update(TaskTable)
            .where(TaskTable.event_id == event_id, TaskTable.task_id == task_id)
            .values(updated_at=utc_now(), **_sharing_to_columns(sharing))
        )
        return await self.get(event_id, task_id)

    async def update_status(
        self, event_id: UUID, task_id: UUID, status: TaskStatus
    ) -> Optional[Task]:
        await self.session.execute(
            update(TaskTable)
            .where(TaskTable.event_id == event_id, TaskTable.task_id == task_id)
            .values(status=status, updated_at=utc_now())
        )
        return await self.get(event_id, task_id)

    async def delete(self, event_id: UUID, task_id: UUID) -> bool:
        result = await self.session.execute(
            delete(TaskTable).where(TaskTable.event_id == event_id, TaskTable.task_id == task_id)
        )
        return result.rowcount > 0

    def _row_to_model(self, row: TaskTable) -> Task:
        return Task(
            task_id=row.task_id,
            event_id=row.event_id,
            title=row.title,
            description=row.description,
            due_date=ensure_utc(row.due_date),
            status=TaskStatus(row.status),
            sharing=_columns_to_sharing(row),
            created_by=row.created_by,
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
        )
