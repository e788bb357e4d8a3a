from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from church_admin.auth.deps import get_current_principal
from church_admin.auth.security import Principal
from church_admin.core.db import get_db
from church_admin.schemas.common import Envelope
from church_admin.schemas.person import PersonCreate, PersonOut, PersonUpdate
from church_admin.services import people as people_service

router = APIRouter(prefix="/people", tags=["people"])


@router.post("", response_model=Envelope[PersonOut], status_code=status.HTTP_201_CREATED)
def create_person(
    payload: PersonCreate,
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
) -> Envelope[PersonOut]:
    person = people_service.create_person(db, payload)
    return Envelope(message="Person created", data=people_service.serialize_person(person))


@router.get("/{person_id}", response_model=Envelope[PersonOut])
def get_person(
    person_id: int,
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
) -> Envelope[PersonOut]:
    return Envelope(data=people_service.serialize_person(people_service.get_person(db, person_id)))


@router.patch("/{person_id}", response_model=Envelope[PersonOut])
def amend_person(
    person_id: int,
    payload: PersonUpdate,
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
) -> Envelope[PersonOut]:
    person = people_service.amend_person(db, person_id, payload)
    return Envelope(message="Person updated", data=people_service.serialize_person(person))
