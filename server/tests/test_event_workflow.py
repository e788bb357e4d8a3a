from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from church_admin.core.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from church_admin.models.event import Event, EventState
from church_admin.schemas.event import EventCreate, EventUpdate
from church_admin.services import events as events_service

from conftest import TestingSessionLocal


def _future(hours: int = 1) -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=hours)


def _create(db_session, ministry, principal, **overrides) -> Event:
    payload = {"ministry_id": ministry.id, "name": "Youth night", "starts_at": _future()}
    payload.update(overrides)
    return events_service.create_event(db_session, EventCreate(**payload), principal)


def test_create_event_starts_pending(db_session, ministry, leader_principal):
    event = _create(db_session, ministry, leader_principal, location="  Main hall ", description="")

    assert event.state == EventState.PENDING
    assert event.version == 1
    assert event.location == "Main hall"
    assert event.description is None
    assert event.created_by_id == leader_principal.identity_id


def test_pastor_can_create_event_for_any_ministry(db_session, empty_ministry, pastor_principal):
    event = _create(db_session, empty_ministry, pastor_principal)
    assert event.state == EventState.PENDING


def test_leader_of_another_ministry_cannot_create_event(db_session, ministry, outsider_principal):
    with pytest.raises(ForbiddenError):
        _create(db_session, ministry, outsider_principal)
    assert db_session.query(Event).count() == 0


def test_create_event_in_the_past_is_rejected(db_session, ministry, leader_principal):
    yesterday = datetime.now(timezone.utc) - timedelta(days=1)
    with pytest.raises(ValidationError) as excinfo:
        _create(db_session, ministry, leader_principal, starts_at=yesterday)

    assert excinfo.value.field == "starts_at"
    assert db_session.query(Event).count() == 0


@pytest.mark.parametrize("offset", [timedelta(0), timedelta(minutes=-30)])
def test_end_must_be_strictly_after_start(db_session, ministry, leader_principal, offset):
    start = _future(2)
    with pytest.raises(ValidationError) as excinfo:
        _create(db_session, ministry, leader_principal, starts_at=start, ends_at=start + offset)
    assert excinfo.value.field == "ends_at"


@pytest.mark.parametrize(
    "overrides, field",
    [({"name": "   "}, "name"), ({"name": None}, "name"), ({"starts_at": None}, "starts_at")],
)
def test_missing_name_or_start_is_rejected(db_session, ministry, leader_principal, overrides, field):
    with pytest.raises(ValidationError) as excinfo:
        _create(db_session, ministry, leader_principal, **overrides)
    assert excinfo.value.field == field


def test_naive_start_is_treated_as_utc(db_session, ministry, leader_principal):
    naive = (datetime.now(timezone.utc) + timedelta(hours=3)).replace(tzinfo=None)
    event = _create(db_session, ministry, leader_principal, starts_at=naive)
    assert event.state == EventState.PENDING


def test_events_cannot_be_created_for_disabled_ministry(db_session, ministry, pastor_principal):
    ministry.is_active = False
    db_session.commit()
    with pytest.raises(InvalidStateError):
        _create(db_session, ministry, pastor_principal)


def test_create_event_for_unknown_ministry(db_session, pastor_principal):
    with pytest.raises(NotFoundError):
        events_service.create_event(
            db_session, EventCreate(ministry_id=999, name="Ghost", starts_at=_future()), pastor_principal
        )


def test_full_approval_path_then_edit_is_rejected(db_session, ministry, leader_principal, pastor_principal):
    event = _create(db_session, ministry, leader_principal)

    event = events_service.request_review(db_session, event.id, leader_principal)
    assert event.state == EventState.IN_REVIEW

    event = events_service.decide_event(db_session, event.id, True, pastor_principal, reason="ignored")
    assert event.state == EventState.APPROVED
    assert event.rejection_reason is None
    assert event.version == 3

    with pytest.raises(InvalidStateError) as excinfo:
        events_service.edit_event(db_session, event.id, EventUpdate(name="Renamed"), leader_principal)
    assert excinfo.value.current_state == "APPROVED"


def test_reject_requires_reason_and_keeps_state(db_session, ministry, leader_principal, pastor_principal):
    event = _create(db_session, ministry, leader_principal)
    events_service.request_review(db_session, event.id, leader_principal)

    for reason in (None, "", "   "):
        with pytest.raises(ValidationError):
            events_service.decide_event(db_session, event.id, False, pastor_principal, reason=reason)

    assert events_service.get_event(db_session, event.id).state == EventState.IN_REVIEW

    rejected = events_service.decide_event(db_session, event.id, False, pastor_principal, reason=" Date clash ")
    assert rejected.state == EventState.REJECTED
    assert rejected.rejection_reason == "Date clash"


def test_only_ministry_leader_can_request_review(db_session, ministry, leader_principal, pastor_principal, outsider_principal):
    event = _create(db_session, ministry, leader_principal)

    for principal in (pastor_principal, outsider_principal):
        with pytest.raises(ForbiddenError):
            events_service.request_review(db_session, event.id, principal)

    assert events_service.get_event(db_session, event.id).state == EventState.PENDING


def test_request_review_only_from_pending(db_session, ministry, leader_principal):
    event = _create(db_session, ministry, leader_principal)
    events_service.request_review(db_session, event.id, leader_principal)

    with pytest.raises(InvalidStateError):
        events_service.request_review(db_session, event.id, leader_principal)


def test_only_pastor_can_decide(db_session, ministry, leader_principal):
    event = _create(db_session, ministry, leader_principal)
    events_service.request_review(db_session, event.id, leader_principal)

    with pytest.raises(ForbiddenError):
        events_service.decide_event(db_session, event.id, True, leader_principal)


def test_decide_requires_in_review(db_session, ministry, leader_principal, pastor_principal):
    event = _create(db_session, ministry, leader_principal)

    with pytest.raises(InvalidStateError):
        events_service.decide_event(db_session, event.id, True, pastor_principal)
    assert events_service.get_event(db_session, event.id).state == EventState.PENDING


@pytest.mark.parametrize("steps", [[], ["review"], ["review", "approve"]])
def test_cancel_from_non_terminal_states(db_session, ministry, leader_principal, pastor_principal, steps):
    event = _create(db_session, ministry, leader_principal)
    if "review" in steps:
        events_service.request_review(db_session, event.id, leader_principal)
    if "approve" in steps:
        events_service.decide_event(db_session, event.id, True, pastor_principal)

    cancelled = events_service.cancel_event(db_session, event.id, leader_principal)
    assert cancelled.state == EventState.CANCELLED


def test_terminal_states_allow_nothing(db_session, ministry, leader_principal, pastor_principal):
    rejected = _create(db_session, ministry, leader_principal)
    events_service.request_review(db_session, rejected.id, leader_principal)
    events_service.decide_event(db_session, rejected.id, False, pastor_principal, reason="No budget")

    cancelled = _create(db_session, ministry, leader_principal, name="Retreat")
    events_service.cancel_event(db_session, cancelled.id, pastor_principal)

    for event_id in (rejected.id, cancelled.id):
        with pytest.raises(InvalidStateError):
            events_service.cancel_event(db_session, event_id, pastor_principal)
        with pytest.raises(InvalidStateError):
            events_service.request_review(db_session, event_id, leader_principal)
        with pytest.raises(InvalidStateError):
            events_service.edit_event(db_session, event_id, EventUpdate(location="Hall"), leader_principal)


def test_outsider_cannot_cancel(db_session, ministry, leader_principal, outsider_principal):
    event = _create(db_session, ministry, leader_principal)
    with pytest.raises(ForbiddenError):
        events_service.cancel_event(db_session, event.id, outsider_principal)


def test_edit_revalidates_dates_without_changing_state(db_session, ministry, leader_principal):
    start = _future(5)
    event = _create(db_session, ministry, leader_principal, starts_at=start)
    events_service.request_review(db_session, event.id, leader_principal)

    with pytest.raises(ValidationError):
        events_service.edit_event(db_session, event.id, EventUpdate(ends_at=start - timedelta(hours=1)), leader_principal)

    with pytest.raises(ValidationError):
        events_service.edit_event(
            db_session,
            event.id,
            EventUpdate(starts_at=datetime.now(timezone.utc) - timedelta(hours=1)),
            leader_principal,
        )

    edited = events_service.edit_event(
        db_session,
        event.id,
        EventUpdate(name="Youth worship night", ends_at=start + timedelta(hours=2)),
        leader_principal,
    )
    assert edited.state == EventState.IN_REVIEW
    assert edited.name == "Youth worship night"
    assert edited.ends_at is not None
    assert edited.version == 3


def test_edit_can_clear_end_time(db_session, ministry, leader_principal):
    start = _future(5)
    event = _create(db_session, ministry, leader_principal, starts_at=start, ends_at=start + timedelta(hours=1))

    edited = events_service.edit_event(db_session, event.id, EventUpdate(ends_at=None), leader_principal)
    assert edited.ends_at is None


def test_stale_expected_version_is_a_conflict(db_session, ministry, leader_principal, pastor_principal):
    event = _create(db_session, ministry, leader_principal)
    events_service.request_review(db_session, event.id, leader_principal)

    with pytest.raises(ConflictError):
        events_service.decide_event(db_session, event.id, True, pastor_principal, expected_version=1)
    assert events_service.get_event(db_session, event.id).state == EventState.IN_REVIEW


def test_compare_and_set_refuses_moved_row(db_session, ministry, leader_principal, pastor_principal):
    event = _create(db_session, ministry, leader_principal)
    events_service.request_review(db_session, event.id, leader_principal)
    events_service.decide_event(db_session, event.id, True, pastor_principal)

    swapped = events_service.compare_and_set(
        db_session,
        event.id,
        expected_state=EventState.IN_REVIEW,
        expected_version=2,
        values={"state": EventState.REJECTED, "rejection_reason": "late"},
    )
    db_session.rollback()

    assert swapped is False
    assert events_service.get_event(db_session, event.id).state == EventState.APPROVED


def test_concurrent_decision_between_guard_and_write_loses(db_session, ministry, leader_principal, pastor_principal, monkeypatch):
    event = _create(db_session, ministry, leader_principal)
    events_service.request_review(db_session, event.id, leader_principal)

    original = events_service.compare_and_set

    def racing_compare_and_set(db, event_id, **kwargs):
        with TestingSessionLocal() as other:
            other.execute(
                update(Event)
                .where(Event.id == event_id)
                .values(state=EventState.REJECTED, rejection_reason="Decided elsewhere", version=Event.version + 1)
            )
            other.commit()
        return original(db, event_id, **kwargs)

    monkeypatch.setattr(events_service, "compare_and_set", racing_compare_and_set)

    with pytest.raises(ConflictError):
        events_service.decide_event(db_session, event.id, True, pastor_principal)

    stored = events_service.get_event(db_session, event.id)
    assert stored.state == EventState.REJECTED
    assert stored.rejection_reason == "Decided elsewhere"


def test_list_events_orders_by_start(db_session, ministry, leader_principal):
    later = _create(db_session, ministry, leader_principal, name="Later", starts_at=_future(48))
    sooner = _create(db_session, ministry, leader_principal, name="Sooner", starts_at=_future(2))

    items = events_service.list_events(db_session, ministry.id)
    assert [item.id for item in items] == [sooner.id, later.id]


def test_validate_schedule_uses_reference_time():
    reference = datetime(2030, 1, 1, 12, tzinfo=timezone.utc)
    start, end = events_service.validate_schedule(
        datetime(2030, 1, 1, 13, tzinfo=timezone.utc),
        None,
        reject_past_start=True,
        reference=reference,
    )
    assert start.hour == 13
    assert end is None


def test_resending_a_past_start_unchanged_is_allowed(db_session, ministry, leader_principal):
    event = _create(db_session, ministry, leader_principal)
    past = datetime.now(timezone.utc) - timedelta(hours=3)
    with TestingSessionLocal() as other:
        other.execute(update(Event).where(Event.id == event.id).values(starts_at=past))
        other.commit()

    stored = events_service.get_event(db_session, event.id)
    edited = events_service.edit_event(
        db_session,
        event.id,
        EventUpdate(name="Youth night (moved room)", starts_at=stored.starts_at, location="Annex"),
        leader_principal,
    )
    assert edited.name == "Youth night (moved room)"
    assert events_service.as_utc(edited.starts_at) == past

    with pytest.raises(ValidationError):
        events_service.edit_event(
            db_session,
            event.id,
            EventUpdate(starts_at=past - timedelta(minutes=5)),
            leader_principal,
        )
