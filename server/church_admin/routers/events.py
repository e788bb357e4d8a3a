from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from church_admin.auth.deps import get_current_principal
from church_admin.auth.security import Principal
from church_admin.core.db import get_db
from church_admin.schemas.common import Envelope
from church_admin.schemas.event import (
    EventCreate,
    EventDecision,
    EventOut,
    EventTransitionRequest,
    EventUpdate,
)
from church_admin.services import events as events_service

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=Envelope[list[EventOut]])
def list_events(
    ministry_id: int = Query(..., ge=1),
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
) -> Envelope[list[EventOut]]:
    items = events_service.list_events(db, ministry_id)
    return Envelope(data=[EventOut.from_orm(item) for item in items])


@router.post("", response_model=Envelope[EventOut], status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Envelope[EventOut]:
    event = events_service.create_event(db, payload, principal)
    return Envelope(message="Event created and pending review", data=EventOut.from_orm(event))


@router.get("/{event_id}", response_model=Envelope[EventOut])
def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
) -> Envelope[EventOut]:
    return Envelope(data=EventOut.from_orm(events_service.get_event(db, event_id)))


@router.patch("/{event_id}", response_model=Envelope[EventOut])
def edit_event(
    event_id: int,
    payload: EventUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Envelope[EventOut]:
    event = events_service.edit_event(db, event_id, payload, principal)
    return Envelope(message="Event updated", data=EventOut.from_orm(event))


@router.post("/{event_id}/review", response_model=Envelope[EventOut])
def request_review(
    event_id: int,
    payload: EventTransitionRequest | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Envelope[EventOut]:
    expected_version = payload.expected_version if payload else None
    event = events_service.request_review(db, event_id, principal, expected_version=expected_version)
    return Envelope(message="Event sent to review", data=EventOut.from_orm(event))


@router.post("/{event_id}/decision", response_model=Envelope[EventOut])
def decide_event(
    event_id: int,
    payload: EventDecision,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Envelope[EventOut]:
    event = events_service.decide_event(
        db,
        event_id,
        payload.approve,
        principal,
        reason=payload.reason,
        expected_version=payload.expected_version,
    )
    message = "Event approved" if payload.approve else "Event rejected"
    return Envelope(message=message, data=EventOut.from_orm(event))


@router.post("/{event_id}/cancel", response_model=Envelope[EventOut])
def cancel_event(
    event_id: int,
    payload: EventTransitionRequest | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Envelope[EventOut]:
    expected_version = payload.expected_version if payload else None
    event = events_service.cancel_event(db, event_id, principal, expected_version=expected_version)
    return Envelope(message="Event cancelled", data=EventOut.from_orm(event))
