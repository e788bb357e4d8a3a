"""Event approval workflow.

Lifecycle::

    PENDING -> IN_REVIEW -> APPROVED | REJECTED
    PENDING | IN_REVIEW | APPROVED -> CANCELLED

REJECTED and CANCELLED are terminal. Every write after creation is a
conditional UPDATE on the state and version that were read when the guard
ran, so two concurrent transitions cannot both succeed.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from church_admin.auth.security import Principal
from church_admin.core.db import unit_of_work
from church_admin.core.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from church_admin.models.event import Event, EventState
from church_admin.models.ministry import Ministry
from church_admin.schemas.event import EventCreate, EventUpdate
from church_admin.services import notifications
from church_admin.services.authorization import Action, authorize

logger = logging.getLogger(__name__)

EDITABLE_STATES = frozenset({EventState.PENDING, EventState.IN_REVIEW})
TERMINAL_STATES = frozenset({EventState.REJECTED, EventState.CANCELLED})

# transition -> (allowed source states, target state)
TRANSITIONS: dict[str, tuple[frozenset[EventState], EventState]] = {
    "request_review": (frozenset({EventState.PENDING}), EventState.IN_REVIEW),
    "approve": (frozenset({EventState.IN_REVIEW}), EventState.APPROVED),
    "reject": (frozenset({EventState.IN_REVIEW}), EventState.REJECTED),
    "cancel": (frozenset({EventState.PENDING, EventState.IN_REVIEW, EventState.APPROVED}), EventState.CANCELLED),
}

STALE_MESSAGE = "The event was modified by another request; reload it and try again"


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _clean_name(value: str | None) -> str:
    cleaned = _clean_optional(value)
    if not cleaned:
        raise ValidationError("Event name is required", field="name")
    return cleaned


def validate_schedule(
    starts_at: datetime | None,
    ends_at: datetime | None,
    *,
    reject_past_start: bool,
    reference: datetime | None = None,
) -> tuple[datetime, datetime | None]:
    if starts_at is None:
        raise ValidationError("Event start time is required", field="starts_at")
    start = as_utc(starts_at)
    end = as_utc(ends_at) if ends_at is not None else None
    if reject_past_start and start < as_utc(reference or now_utc()):
        raise ValidationError("The start time cannot be in the past", field="starts_at")
    if end is not None and end <= start:
        raise ValidationError("The end time must be after the start time", field="ends_at")
    return start, end


def _load_ministry(db: Session, ministry_id: int) -> Ministry:
    ministry = db.query(Ministry).filter(Ministry.id == ministry_id).first()
    if not ministry:
        raise NotFoundError("Ministry not found", details={"ministry_id": ministry_id})
    return ministry


def get_event(db: Session, event_id: int) -> Event:
    # populate_existing so guards always see the stored row, not a cached copy
    event = db.query(Event).filter(Event.id == event_id).populate_existing().first()
    if not event:
        raise NotFoundError("Event not found", details={"event_id": event_id})
    return event


def list_events(db: Session, ministry_id: int) -> list[Event]:
    _load_ministry(db, ministry_id)
    return (
        db.query(Event)
        .filter(Event.ministry_id == ministry_id)
        .order_by(Event.starts_at.asc(), Event.id.asc())
        .all()
    )


def compare_and_set(
    db: Session,
    event_id: int,
    *,
    expected_state: EventState,
    expected_version: int,
    values: dict[str, Any],
) -> bool:
    """Write ``values`` only if the row still has the state and version we read."""

    stmt = (
        update(Event)
        .where(
            Event.id == event_id,
            Event.state == expected_state,
            Event.version == expected_version,
        )
        .values(version=expected_version + 1, updated_at=datetime.utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    return result.rowcount == 1


def _check_expected_version(event: Event, expected_version: int | None) -> None:
    if expected_version is not None and expected_version != event.version:
        raise ConflictError(
            STALE_MESSAGE,
            details={"event_id": event.id, "expected_version": expected_version, "current_version": event.version},
        )


def _apply(db: Session, event: Event, expected_state: EventState, values: dict[str, Any]) -> Event:
    with unit_of_work(db, conflict_message=STALE_MESSAGE):
        swapped = compare_and_set(
            db,
            event.id,
            expected_state=expected_state,
            expected_version=event.version,
            values=values,
        )
        if not swapped:
            logger.warning("event_write_conflict", extra={"event_id": event.id, "expected_state": expected_state.value})
            raise ConflictError(STALE_MESSAGE, details={"event_id": event.id})
    db.refresh(event)
    return event


def _transition(
    db: Session,
    event: Event,
    transition: str,
    principal: Principal,
    *,
    expected_version: int | None = None,
    values: dict[str, Any] | None = None,
) -> Event:
    sources, target = TRANSITIONS[transition]
    current = EventState(event.state)
    if current not in sources:
        raise InvalidStateError(
            f"Cannot {transition.replace('_', ' ')} an event that is {current.value}",
            current_state=current.value,
            action=transition,
        )
    _check_expected_version(event, expected_version)

    _apply(db, event, current, {"state": target, **(values or {})})
    notifications.notify_event_state_changed(event, current, principal.identity_id)
    return event


def create_event(db: Session, payload: EventCreate, principal: Principal) -> Event:
    ministry = _load_ministry(db, payload.ministry_id)
    authorize(db, principal, Action.CREATE_EVENT, ministry_id=ministry.id)
    if not ministry.is_active:
        raise InvalidStateError(
            "Events cannot be created for a disabled ministry",
            current_state="disabled",
            action="create_event",
        )

    name = _clean_name(payload.name)
    starts_at, ends_at = validate_schedule(payload.starts_at, payload.ends_at, reject_past_start=True)

    event = Event(
        ministry_id=ministry.id,
        name=name,
        description=_clean_optional(payload.description),
        starts_at=starts_at,
        ends_at=ends_at,
        location=_clean_optional(payload.location),
        is_active=True,
        state=EventState.PENDING,
        version=1,
        created_by_id=principal.identity_id,
    )
    with unit_of_work(db):
        db.add(event)
    db.refresh(event)
    notifications.notify_event_created(event, principal.identity_id)
    return event


def edit_event(db: Session, event_id: int, payload: EventUpdate, principal: Principal) -> Event:
    event = get_event(db, event_id)
    authorize(db, principal, Action.EDIT_EVENT, ministry_id=event.ministry_id)

    current = EventState(event.state)
    if current not in EDITABLE_STATES:
        raise InvalidStateError(
            f"An event that is {current.value} can no longer be edited",
            current_state=current.value,
            action="edit",
        )

    changes = payload.dict(exclude_unset=True)
    _check_expected_version(event, changes.pop("expected_version", None))

    values: dict[str, Any] = {}
    if "name" in changes:
        values["name"] = _clean_name(changes["name"])
    if "description" in changes:
        values["description"] = _clean_optional(changes["description"])
    if "location" in changes:
        values["location"] = _clean_optional(changes["location"])

    # resending the stored start is not a reschedule
    start_changed = "starts_at" in changes and (
        changes["starts_at"] is None or as_utc(changes["starts_at"]) != as_utc(event.starts_at)
    )
    starts_at, ends_at = validate_schedule(
        changes["starts_at"] if start_changed else event.starts_at,
        changes["ends_at"] if "ends_at" in changes else event.ends_at,
        reject_past_start=start_changed,
    )
    if start_changed:
        values["starts_at"] = starts_at
    if "ends_at" in changes:
        values["ends_at"] = ends_at

    if not values:
        return event
    return _apply(db, event, current, values)


def request_review(db: Session, event_id: int, principal: Principal, expected_version: int | None = None) -> Event:
    event = get_event(db, event_id)
    authorize(db, principal, Action.REQUEST_REVIEW, ministry_id=event.ministry_id)
    return _transition(db, event, "request_review", principal, expected_version=expected_version)


def decide_event(
    db: Session,
    event_id: int,
    approve: bool,
    principal: Principal,
    reason: str | None = None,
    expected_version: int | None = None,
) -> Event:
    event = get_event(db, event_id)
    authorize(db, principal, Action.DECIDE_EVENT, ministry_id=event.ministry_id)

    if approve:
        return _transition(
            db,
            event,
            "approve",
            principal,
            expected_version=expected_version,
            values={"rejection_reason": None},
        )

    cleaned_reason = _clean_optional(reason)
    if not cleaned_reason:
        raise ValidationError("A reason is required to reject an event", field="reason")
    return _transition(
        db,
        event,
        "reject",
        principal,
        expected_version=expected_version,
        values={"rejection_reason": cleaned_reason},
    )


def cancel_event(db: Session, event_id: int, principal: Principal, expected_version: int | None = None) -> Event:
    event = get_event(db, event_id)
    authorize(db, principal, Action.CANCEL_EVENT, ministry_id=event.ministry_id)
    return _transition(db, event, "cancel", principal, expected_version=expected_version)
