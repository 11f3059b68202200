"""Initial EventDesk schema."""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _enum(*values: str, name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, create_type=False)


def upgrade() -> None:
    """Create base tables and enums."""
    bind = op.get_bind()

    eventstatus = _enum(
        "draft",
        "planning",
        "confirmed",
        "in_progress",
        "completed",
        "cancelled",
        name="eventstatus",
    )
    memberstatus = _enum("invited", "active", "onboarding", name="memberstatus")
    contractorstatus = _enum(
        "hired", "interested", "declined", "pending", name="contractorstatus"
    )
    sharingmode = _enum("all", "selected", "none", name="sharingmode")
    taskstatus = _enum("todo", "in_progress", "completed", "cancelled", name="taskstatus")

    for enum_type in (eventstatus, memberstatus, contractorstatus, sharingmode, taskstatus):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "events",
        sa.Column("event_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column("status", eventstatus, nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_events_created_by", "events", ["created_by", "created_at"])

    op.create_table(
        "event_status_history",
        sa.Column("entry_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.event_id"),
            nullable=False,
        ),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("previous_status", eventstatus, nullable=True),
        sa.Column("new_status", eventstatus, nullable=False),
        sa.Column("changed_by", sa.String(length=255), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("event_id", "sequence", name="uq_status_history_sequence"),
    )
    op.create_index(
        "idx_status_history_event",
        "event_status_history",
        ["event_id", "created_at", "sequence"],
    )

    op.create_table(
        "event_team_members",
        sa.Column("member_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.event_id"),
            nullable=False,
        ),
        sa.Column("person_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=100), nullable=False),
        sa.Column("is_creator", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", memberstatus, nullable=False, server_default="active"),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("event_id", "person_id", name="uq_team_member_person"),
    )
    op.create_index("idx_team_members_event", "event_team_members", ["event_id", "added_at"])
    op.create_index(
        "uq_team_members_creator",
        "event_team_members",
        ["event_id"],
        unique=True,
        postgresql_where=sa.text("is_creator"),
    )

    op.create_table(
        "event_contractors",
        sa.Column("contractor_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.event_id"),
            nullable=False,
        ),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("status", contractorstatus, nullable=False, server_default="pending"),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_contractors_event", "event_contractors", ["event_id", "added_at"])

    def sharing_columns() -> list[sa.Column]:
        return [
            sa.Column("team_sharing", sharingmode, nullable=False, server_default="none"),
            sa.Column(
                "team_member_ids",
                postgresql.JSONB,
                nullable=False,
                server_default=sa.text("'[]'::jsonb"),
            ),
            sa.Column("contractor_sharing", sharingmode, nullable=False, server_default="none"),
            sa.Column(
                "contractor_ids",
                postgresql.JSONB,
                nullable=False,
                server_default=sa.text("'[]'::jsonb"),
            ),
        ]

    op.create_table(
        "event_documents",
        sa.Column("document_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.event_id"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("file_path", sa.Text(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("uploaded_by", sa.String(length=255), nullable=True),
        *sharing_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_documents_event", "event_documents", ["event_id", "created_at"])

    op.create_table(
        "event_tasks",
        sa.Column("task_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.event_id"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", taskstatus, nullable=False, server_default="todo"),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        *sharing_columns(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_tasks_event_status", "event_tasks", ["event_id", "status", "created_at"]
    )


def downgrade() -> None:
    """Drop all tables and enums."""
    op.drop_index("idx_tasks_event_status", table_name="event_tasks")
    op.drop_table("event_tasks")

    op.drop_index("idx_documents_event", table_name="event_documents")
    op.drop_table("event_documents")

    op.drop_index("idx_contractors_event", table_name="event_contractors")
    op.drop_table("event_contractors")

    op.drop_index("uq_team_members_creator", table_name="event_team_members")
    op.drop_index("idx_team_members_event", table_name="event_team_members")
    op.drop_table("event_team_members")

    op.drop_index("idx_status_history_event", table_name="event_status_history")
    op.drop_table("event_status_history")

    op.drop_index("idx_events_created_by", table_name="events")
    op.drop_table("events")

    bind = op.get_bind()
    for name in ("taskstatus", "sharingmode", "contractorstatus", "memberstatus", "eventstatus"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
