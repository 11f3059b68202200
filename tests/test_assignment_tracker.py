"""
Assignment tracker tests.

Assignments store SELECTED axes with unknown ids dropped; every sharing
write is sanitized against the live roster; task status changes are
permissive and limited to the owner or a current assignee.
"""

import pytest
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.engine import EventDeskEngine, NotFound, Unauthorized, ValidationFailed
from eventdesk.engine.tracker import (
    assigned_tasks,
    build_assignment,
    directly_assigned_tasks,
    sanitize_sharing,
)
from eventdesk.models import (
    Actor,
    ArtifactKind,
    RosterKind,
    ShareAll,
    ShareNone,
    ShareSelected,
    SharingSpec,
    TaskStatus,
)

from factories import make_roster, make_task


async def _event_with_roster(engine: EventDeskEngine, owner: Actor):
    event = await engine.create_event(title="Wedding", created_by=owner)
    m1 = await engine.add_roster_member(event.event_id, owner, "p-1", "Ana", "Planner")
    m2 = await engine.add_roster_member(event.event_id, owner, "p-2", "Ben", "Runner")
    vendor = await engine.add_contractor(event.event_id, owner, "Bloom Florists", "hired")
    return event, m1, m2, vendor


@pytest.mark.asyncio
async def test_assign_stores_selected_axes_and_drops_unknown_ids(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event, m1, m2, vendor = await _event_with_roster(engine, owner)
    task = await engine.create_task(event.event_id, owner, "Order flowers")

    stranger_id = uuid4()
    updated = await engine.assign(
        event.event_id,
        ArtifactKind.TASK,
        task.task_id,
        team_member_ids=[m1.member_id, stranger_id],
        contractor_ids=[vendor.contractor_id, uuid4()],
        actor=owner,
    )

    assert updated.sharing.team == ShareSelected(ids=frozenset({m1.member_id}))
    assert updated.sharing.contractors == ShareSelected(ids=frozenset({vendor.contractor_id}))

    stored = await engine.get_artifact(event.event_id, ArtifactKind.TASK, task.task_id)
    assert stored.sharing == updated.sharing


@pytest.mark.asyncio
async def test_assign_documents_too(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event, m1, m2, vendor = await _event_with_roster(engine, owner)
    doc = await engine.create_document(
        event.event_id, owner, "Floor plan", "events/plan.pdf", 2048, "application/pdf"
    )

    updated = await engine.assign(
        event.event_id, "document", doc.document_id, [m2.member_id], [], owner
    )

    assert updated.sharing.team == ShareSelected(ids=frozenset({m2.member_id}))
    assert updated.sharing.contractors == ShareSelected()
    viewers = await engine.resolve_viewers(event.event_id, ArtifactKind.DOCUMENT, doc.document_id)
    assert viewers.team_member_ids == frozenset({m2.member_id})
    assert viewers.contractor_ids == frozenset()


@pytest.mark.asyncio
async def test_create_and_update_sharing_are_sanitized(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event, m1, m2, vendor = await _event_with_roster(engine, owner)

    task = await engine.create_task(
        event.event_id,
        owner,
        "Book band",
        sharing_spec=SharingSpec(team=ShareSelected(ids=frozenset({m1.member_id, uuid4()}))),
    )
    assert task.sharing.team == ShareSelected(ids=frozenset({m1.member_id}))

    updated = await engine.update_artifact_sharing(
        event.event_id,
        ArtifactKind.TASK,
        task.task_id,
        SharingSpec(team=ShareAll(), contractors=ShareSelected(ids=frozenset({uuid4()}))),
        owner,
    )
    assert updated.sharing.team == ShareAll()
    assert updated.sharing.contractors == ShareSelected()


@pytest.mark.asyncio
async def test_sharing_update_is_idempotent(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event, m1, m2, vendor = await _event_with_roster(engine, owner)
    task = await engine.create_task(event.event_id, owner, "Seating chart")
    spec = SharingSpec(team=ShareSelected(ids=frozenset({m1.member_id, m2.member_id})))

    first = await engine.update_artifact_sharing(
        event.event_id, ArtifactKind.TASK, task.task_id, spec, owner
    )
    second = await engine.update_artifact_sharing(
        event.event_id, ArtifactKind.TASK, task.task_id, spec, owner
    )

    assert first.sharing == second.sharing
    assert (
        await engine.resolve_viewers(event.event_id, ArtifactKind.TASK, task.task_id)
    ).team_member_ids == frozenset({m1.member_id, m2.member_id})


@pytest.mark.asyncio
async def test_get_assigned_tasks_only_counts_direct_selection(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event, m1, m2, vendor = await _event_with_roster(engine, owner)

    direct = await engine.create_task(event.event_id, owner, "Direct")
    await engine.assign(event.event_id, "task", direct.task_id, [m1.member_id], [], owner)
    await engine.create_task(
        event.event_id, owner, "Everyone", sharing_spec=SharingSpec.everyone()
    )
    await engine.create_task(event.event_id, owner, "Private")

    tasks = await engine.get_assigned_tasks(event.event_id, m1.member_id)

    assert [t.task_id for t in tasks] == [direct.task_id]
    assert await engine.get_assigned_tasks(event.event_id, m2.member_id) == []


@pytest.mark.asyncio
async def test_task_status_is_permissive(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event, m1, m2, vendor = await _event_with_roster(engine, owner)
    task = await engine.create_task(event.event_id, owner, "Print menus")

    for status in ["completed", TaskStatus.TODO, TaskStatus.CANCELLED, TaskStatus.IN_PROGRESS]:
        task = await engine.update_task_status(event.event_id, task.task_id, status, owner)
        assert task.status == TaskStatus(status)

    with pytest.raises(ValidationFailed):
        await engine.update_task_status(event.event_id, task.task_id, "blocked", owner)


@pytest.mark.asyncio
async def test_assignee_may_update_task_status(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event, m1, m2, vendor = await _event_with_roster(engine, owner)
    task = await engine.create_task(event.event_id, owner, "Confirm caterer")
    await engine.assign(event.event_id, "task", task.task_id, [m1.member_id], [], owner)

    ana = Actor(id="p-1")
    ben = Actor(id="p-2")

    updated = await engine.update_task_status(event.event_id, task.task_id, "in_progress", ana)
    assert updated.status == TaskStatus.IN_PROGRESS

    with pytest.raises(Unauthorized):
        await engine.update_task_status(event.event_id, task.task_id, "completed", ben)


@pytest.mark.asyncio
async def test_only_owner_mutates_artifacts(session: AsyncSession, owner, stranger):
    engine = EventDeskEngine(session)
    event, m1, m2, vendor = await _event_with_roster(engine, owner)
    task = await engine.create_task(event.event_id, owner, "Hire DJ")

    with pytest.raises(Unauthorized):
        await engine.assign(event.event_id, "task", task.task_id, [m1.member_id], [], stranger)
    with pytest.raises(Unauthorized):
        await engine.update_artifact_sharing(
            event.event_id, "task", task.task_id, SharingSpec.everyone(), stranger
        )
    with pytest.raises(Unauthorized):
        await engine.delete_artifact(event.event_id, "task", task.task_id, stranger)


@pytest.mark.asyncio
@pytest.mark.parametrize("member_status", ["invited", "active", "onboarding"])
async def test_roster_member_may_create_tasks(session: AsyncSession, owner, member_status):
    engine = EventDeskEngine(session)
    event = await engine.create_event(title="Wedding", created_by=owner)
    m1 = await engine.add_roster_member(
        event.event_id, owner, "p-1", "Ana", "Planner", status=member_status
    )

    task = await engine.create_task(
        event.event_id,
        Actor(id="p-1"),
        "Pick up rings",
        sharing_spec=SharingSpec(team=ShareSelected(ids=frozenset({m1.member_id, uuid4()}))),
    )

    assert task.created_by == "p-1"
    assert task.sharing.team == ShareSelected(ids=frozenset({m1.member_id}))


@pytest.mark.asyncio
async def test_non_member_cannot_create_tasks(session: AsyncSession, owner, stranger):
    engine = EventDeskEngine(session)
    event, m1, m2, vendor = await _event_with_roster(engine, owner)

    with pytest.raises(Unauthorized):
        await engine.create_task(event.event_id, stranger, "Sneaky task")

    assert await engine.list_tasks(event.event_id) == []


@pytest.mark.asyncio
async def test_document_validation(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event = await engine.create_event(title="Gala", created_by=owner)

    with pytest.raises(ValidationFailed):
        await engine.create_document(
            event.event_id, owner, "Virus", "events/run.exe", 10, "application/x-msdownload"
        )
    with pytest.raises(ValidationFailed):
        await engine.create_document(
            event.event_id, owner, "Huge", "events/huge.pdf", 51 * 1024 * 1024, "application/pdf"
        )

    doc = await engine.create_document(
        event.event_id, owner, "Budget", "events/budget.csv", 512, "text/csv"
    )
    assert doc.sharing == SharingSpec.private()
    assert doc.uploaded_by == owner.id


@pytest.mark.asyncio
async def test_delete_artifact(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event = await engine.create_event(title="Gala", created_by=owner)
    task = await engine.create_task(event.event_id, owner, "Throwaway")

    await engine.delete_artifact(event.event_id, ArtifactKind.TASK, task.task_id, owner)

    assert await engine.list_tasks(event.event_id) == []
    with pytest.raises(NotFound):
        await engine.delete_artifact(event.event_id, ArtifactKind.TASK, task.task_id, owner)


@pytest.mark.asyncio
async def test_list_visible_artifacts_for_member_and_contractor(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event, m1, m2, vendor = await _event_with_roster(engine, owner)
    shared = await engine.create_task(
        event.event_id, owner, "Shared", sharing_spec=SharingSpec.everyone()
    )
    await engine.create_task(event.event_id, owner, "Private")
    doc = await engine.create_document(
        event.event_id,
        owner,
        "Vendor brief",
        "events/brief.pdf",
        100,
        "application/pdf",
        sharing_spec=SharingSpec(
            team=ShareNone(), contractors=ShareSelected(ids=frozenset({vendor.contractor_id}))
        ),
    )

    member_view = await engine.list_visible_artifacts(event.event_id, member_id=m2.member_id)
    vendor_view = await engine.list_visible_artifacts(
        event.event_id, contractor_id=vendor.contractor_id
    )

    assert {v.artifact_id for v in member_view} == {shared.task_id}
    assert {v.artifact_id for v in vendor_view} == {shared.task_id, doc.document_id}

    with pytest.raises(ValidationFailed):
        await engine.list_visible_artifacts(event.event_id)


def test_pure_helpers_against_snapshot():
    event_id = uuid4()
    roster = make_roster(event_id, members=3, contractors=1)
    m0, m1, m2 = [m.member_id for m in roster.team_members]
    vendor_id = roster.contractors[0].contractor_id

    open_task = make_task(event_id, SharingSpec(team=ShareSelected(ids=frozenset({m1}))))
    closed_task = make_task(
        event_id, SharingSpec(team=ShareSelected(ids=frozenset({m1}))), TaskStatus.COMPLETED
    )
    broadcast = make_task(event_id, SharingSpec.everyone())
    tasks = [open_task, closed_task, broadcast]

    assert directly_assigned_tasks(tasks, m1) == [open_task, closed_task]
    assert directly_assigned_tasks(tasks, vendor_id, RosterKind.CONTRACTOR) == []
    assert assigned_tasks(tasks, roster, m1) == [open_task, closed_task]
    assert assigned_tasks(tasks, roster, uuid4()) == []

    spec = build_assignment([m0, uuid4()], [uuid4()], roster)
    assert spec.team == ShareSelected(ids=frozenset({m0}))
    assert spec.contractors == ShareSelected()

    cleaned = sanitize_sharing(
        SharingSpec(team=ShareSelected(ids=frozenset({m2, uuid4()})), contractors=ShareAll()),
        roster,
    )
    assert cleaned.team == ShareSelected(ids=frozenset({m2}))
    assert cleaned.contractors == ShareAll()
