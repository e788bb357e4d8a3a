from __future__ import annotations

from sqlalchemy.orm import Session

from church_admin.core.db import unit_of_work
from church_admin.core.errors import ConflictError, NotFoundError
from church_admin.models.person import Person
from church_admin.schemas.person import PersonCreate, PersonOut, PersonUpdate
from church_admin.services.completeness import missing_leader_fields

DUPLICATE_NATIONAL_ID = "Another person already uses this national ID"


def _clean(value):
    if isinstance(value, str):
        return value.strip() or None
    return value


def serialize_person(person: Person) -> PersonOut:
    return PersonOut(
        id=person.id,
        first_names=person.first_names,
        last_names=person.last_names,
        national_id=person.national_id,
        email=person.email,
        phone=person.phone,
        gender=person.gender,
        birth_date=person.birth_date,
        address=person.address,
        education_level=person.education_level,
        occupation=person.occupation,
        missing_leader_fields=missing_leader_fields(person),
        identity_id=person.identity.id if person.identity else None,
        created_at=person.created_at,
        updated_at=person.updated_at,
    )


def get_person(db: Session, person_id: int) -> Person:
    person = db.query(Person).filter(Person.id == person_id).first()
    if not person:
        raise NotFoundError("Person not found", details={"person_id": person_id})
    return person


def _ensure_national_id_free(db: Session, national_id: str | None, exclude_id: int | None = None) -> None:
    if not national_id:
        return
    query = db.query(Person.id).filter(Person.national_id == national_id)
    if exclude_id is not None:
        query = query.filter(Person.id != exclude_id)
    if query.first():
        raise ConflictError(DUPLICATE_NATIONAL_ID, details={"field": "national_id"})


def create_person(db: Session, payload: PersonCreate) -> Person:
    values = {key: _clean(value) for key, value in payload.dict().items()}
    _ensure_national_id_free(db, values.get("national_id"))
    person = Person(**values)
    with unit_of_work(db, conflict_message=DUPLICATE_NATIONAL_ID):
        db.add(person)
    db.refresh(person)
    return person


def amend_person(db: Session, person_id: int, payload: PersonUpdate) -> Person:
    person = get_person(db, person_id)
    changes = {key: _clean(value) for key, value in payload.dict(exclude_unset=True).items()}
    # names are required columns; a blank value keeps what is stored
    for required in ("first_names", "last_names"):
        if required in changes and not changes[required]:
            changes.pop(required)
    if "national_id" in changes:
        _ensure_national_id_free(db, changes["national_id"], exclude_id=person.id)

    with unit_of_work(db, conflict_message=DUPLICATE_NATIONAL_ID):
        for key, value in changes.items():
            setattr(person, key, value)
    db.refresh(person)
    return person
