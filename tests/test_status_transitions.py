"""
Status transition tests.

Covers owner-only transitions, the append-only history with chained
previous_status, and atomicity: a storage failure while writing history
leaves neither the status nor the history changed.
"""

import pytest
from uuid import uuid4

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.engine import (
    EventDeskEngine,
    NotFound,
    StorageFailure,
    Unauthorized,
    ValidationFailed,
)
from eventdesk.models import EventStatus
from eventdesk.observability.metrics import metrics


@pytest.mark.asyncio
async def test_created_event_starts_in_draft_with_empty_history(session: AsyncSession, owner):
    engine = EventDeskEngine(session)

    event = await engine.create_event(title="Spring gala", created_by=owner)

    assert event.status == EventStatus.DRAFT
    assert event.created_by == owner.id
    assert event.created_at.tzinfo is not None
    assert await engine.get_status_history(event.event_id) == []


@pytest.mark.asyncio
async def test_create_event_registers_creator_member(session: AsyncSession, owner):
    engine = EventDeskEngine(session)

    event = await engine.create_event(title="Spring gala", created_by=owner)
    roster = await engine.list_roster(event.event_id)

    assert len(roster.team_members) == 1
    creator = roster.creator
    assert creator is not None
    assert creator.person_id == owner.id
    assert creator.name == owner.display_name


@pytest.mark.asyncio
async def test_create_event_without_creator_member(session: AsyncSession, owner):
    engine = EventDeskEngine(session)

    event = await engine.create_event(
        title="Spring gala", created_by=owner, register_creator=False
    )

    roster = await engine.list_roster(event.event_id)
    assert roster.team_members == []


@pytest.mark.asyncio
async def test_create_event_rejects_blank_title(session: AsyncSession, owner):
    engine = EventDeskEngine(session)

    with pytest.raises(ValidationFailed):
        await engine.create_event(title="   ", created_by=owner)


@pytest.mark.asyncio
async def test_non_owner_transition_is_unauthorized_then_owner_succeeds(
    session: AsyncSession, owner, stranger
):
    engine = EventDeskEngine(session)
    event = await engine.create_event(title="Offsite", created_by=owner)

    with pytest.raises(Unauthorized):
        await engine.transition(event.event_id, EventStatus.PLANNING, stranger)

    assert (await engine.get_event(event.event_id)).status == EventStatus.DRAFT
    assert await engine.get_status_history(event.event_id) == []

    updated = await engine.transition(
        event.event_id, EventStatus.PLANNING, owner, reason="Venue shortlisted"
    )

    assert updated.status == EventStatus.PLANNING
    history = await engine.get_status_history(event.event_id)
    assert len(history) == 1
    entry = history[0]
    assert entry.previous_status is None
    assert entry.new_status == EventStatus.PLANNING
    assert entry.changed_by == owner.id
    assert entry.reason == "Venue shortlisted"
    assert entry.sequence == 1


@pytest.mark.asyncio
async def test_history_chains_previous_status(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event = await engine.create_event(title="Conference", created_by=owner)

    path = [
        EventStatus.PLANNING,
        EventStatus.CONFIRMED,
        EventStatus.IN_PROGRESS,
        EventStatus.COMPLETED,
    ]
    for status in path:
        await engine.transition(event.event_id, status, owner)

    history = await engine.get_status_history(event.event_id)

    assert [e.new_status for e in history] == path
    assert [e.sequence for e in history] == [1, 2, 3, 4]
    assert history[0].previous_status is None
    for earlier, later in zip(history, history[1:]):
        assert later.previous_status == earlier.new_status
    timestamps = [e.timestamp for e in history]
    assert timestamps == sorted(timestamps)


@pytest.mark.asyncio
async def test_any_target_accepted_including_from_terminal(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event = await engine.create_event(title="Retreat", created_by=owner)

    await engine.transition(event.event_id, EventStatus.CANCELLED, owner)
    reopened = await engine.transition(event.event_id, "planning", owner)
    back_to_draft = await engine.transition(event.event_id, EventStatus.DRAFT, owner)

    assert reopened.status == EventStatus.PLANNING
    assert back_to_draft.status == EventStatus.DRAFT
    assert len(await engine.get_status_history(event.event_id)) == 3


@pytest.mark.asyncio
async def test_same_status_transition_is_still_recorded(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event = await engine.create_event(title="Retreat", created_by=owner)

    await engine.transition(event.event_id, EventStatus.PLANNING, owner)
    await engine.transition(event.event_id, EventStatus.PLANNING, owner)

    history = await engine.get_status_history(event.event_id)
    assert len(history) == 2
    assert history[1].previous_status == EventStatus.PLANNING


@pytest.mark.asyncio
async def test_unknown_status_rejected(session: AsyncSession, owner):
    engine = EventDeskEngine(session)
    event = await engine.create_event(title="Retreat", created_by=owner)

    with pytest.raises(ValidationFailed):
        await engine.transition(event.event_id, "postponed", owner)


@pytest.mark.asyncio
async def test_transition_on_missing_event(session: AsyncSession, owner):
    engine = EventDeskEngine(session)

    with pytest.raises(NotFound):
        await engine.transition(uuid4(), EventStatus.PLANNING, owner)


@pytest.mark.asyncio
async def test_history_failure_rolls_back_status(session: AsyncSession, owner):
    """If the history append fails, the status write is rolled back with it."""
    engine = EventDeskEngine(session)
    event = await engine.create_event(title="Product launch", created_by=owner)
    await session.commit()

    async def failing_append(*args, **kwargs):
        raise OperationalError("INSERT INTO event_status_history", {}, Exception("disk full"))

    engine.history.append = failing_append

    with pytest.raises(StorageFailure) as exc_info:
        await engine.transition(event.event_id, EventStatus.PLANNING, owner)

    assert exc_info.value.operation == "transition"
    assert isinstance(exc_info.value.cause, OperationalError)

    fresh = EventDeskEngine(session)
    assert (await fresh.get_event(event.event_id)).status == EventStatus.DRAFT
    assert await fresh.get_status_history(event.event_id) == []


@pytest.mark.asyncio
async def test_transitions_are_counted(session: AsyncSession, owner):
    metrics.reset()
    engine = EventDeskEngine(session)
    event = await engine.create_event(title="Hackathon", created_by=owner)

    await engine.transition(event.event_id, EventStatus.PLANNING, owner)
    await engine.transition(event.event_id, EventStatus.CONFIRMED, owner)

    assert metrics.counter_value("event.transition") == 2
