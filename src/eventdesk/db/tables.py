"""SQLAlchemy table definitions."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from eventdesk.db.base import Base
from eventdesk.models.enums import (
    ContractorStatus,
    EventStatus,
    MemberStatus,
    SharingMode,
    TaskStatus,
)

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _enum(enum_cls: type) -> Enum:
    """Store enum values (not member names) so rows match the API strings."""
    return Enum(enum_cls, values_callable=lambda members: [m.value for m in members])


class EventTable(Base):
    """Events table - one row per organizer event. Never deleted."""

    __tablename__ = "events"

    event_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Ownership (immutable)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    # Status
    status: Mapped[EventStatus] = mapped_column(
        _enum(EventStatus), nullable=False, default=EventStatus.DRAFT
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_events_created_by", "created_by", "created_at"),
    )


class StatusHistoryTable(Base):
    """Event status history - append-only."""

    __tablename__ = "event_status_history"

    entry_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    event_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("events.event_id"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_status: Mapped[EventStatus | None] = mapped_column(_enum(EventStatus), nullable=True)
    new_status: Mapped[EventStatus] = mapped_column(_enum(EventStatus), nullable=False)
    changed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("event_id", "sequence", name="uq_status_history_sequence"),
        Index("idx_status_history_event", "event_id", "created_at", "sequence"),
    )


class RosterMemberTable(Base):
    """Team members assigned to an event."""

    __tablename__ = "event_team_members"

    member_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    event_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("events.event_id"), nullable=False
    )
    person_id: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(100), nullable=False)
    is_creator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[MemberStatus] = mapped_column(
        _enum(MemberStatus), nullable=False, default=MemberStatus.ACTIVE
    )
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        # One membership per person per event
        UniqueConstraint("event_id", "person_id", name="uq_team_member_person"),
        Index("idx_team_members_event", "event_id", "added_at"),
        # At most one creator per event
        Index(
            "uq_team_members_creator",
            "event_id",
            unique=True,
            postgresql_where=text("is_creator"),
            sqlite_where=text("is_creator"),
        ),
    )


class ContractorTable(Base):
    """Contractors associated with an event."""

    __tablename__ = "event_contractors"

    contractor_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    event_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("events.event_id"), nullable=False
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ContractorStatus] = mapped_column(
        _enum(ContractorStatus), nullable=False, default=ContractorStatus.PENDING
    )
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_contractors_event", "event_id", "added_at"),
    )


class SharingColumnsMixin:
    """Two sharing axes; the id lists are only populated under SELECTED."""

    team_sharing: Mapped[SharingMode] = mapped_column(
        _enum(SharingMode), nullable=False, default=SharingMode.NONE
    )
    team_member_ids: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    contractor_sharing: Mapped[SharingMode] = mapped_column(
        _enum(SharingMode), nullable=False, default=SharingMode.NONE
    )
    contractor_ids: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)


class DocumentTable(SharingColumnsMixin, Base):
    """Event documents (file metadata plus sharing)."""

    __tablename__ = "event_documents"

    document_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    event_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("events.event_id"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_documents_event", "event_id", "created_at"),
    )


class TaskTable(SharingColumnsMixin, Base):
    """Event tasks (status plus sharing/assignment)."""

    __tablename__ = "event_tasks"

    task_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    event_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("events.event_id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        _enum(TaskStatus), nullable=False, default=TaskStatus.TODO
    )
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_tasks_event_status", "event_id", "status", "created_at"),
    )

