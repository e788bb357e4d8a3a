"""Seed a fresh store with a Pastor who can sign in and promote everyone else.

Run with ``python -m church_admin.scripts.seed_demo``.
"""
from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from church_admin.auth.security import hash_password
from church_admin.core.db import Base, SessionLocal, engine
from church_admin.models.identity import Identity, IdentityRole
from church_admin.models.ministry import Ministry, MinistryLeadership
from church_admin.models.person import Person
from church_admin.services.leadership import handle_base, next_available_handle

DEMO_PEOPLE = [
    {
        "first_names": "Samuel David",
        "last_names": "Rojas Mena",
        "national_id": "1700000001",
        "email": "pastor@example.com",
        "phone": "0990000001",
        "gender": "Male",
        "birth_date": date(1975, 4, 12),
        "address": "Av. Central 100",
        "occupation": "Pastor",
        "role": IdentityRole.PASTOR,
    },
    {
        "first_names": "Ana Lucia",
        "last_names": "Vera Paz",
        "national_id": "1700000002",
        "email": "ana.vera@example.com",
        "phone": "0990000002",
        "gender": "Female",
        "birth_date": date(1990, 9, 3),
        "address": "Calle 8 y Olmedo",
        "occupation": "Teacher",
        "role": IdentityRole.LEADER,
    },
]

DEMO_MINISTRIES = [
    ("Youth", "Youth ministry", ["ana.vera"]),
    ("Worship", "Music and worship team", []),
]


def ensure_person(db: Session, data: dict) -> Person:
    person = db.query(Person).filter_by(national_id=data["national_id"]).first()
    if person:
        return person
    person = Person(**{key: value for key, value in data.items() if key != "role"})
    db.add(person)
    db.flush()
    return person


def ensure_identity(db: Session, person: Person, role: IdentityRole) -> Identity:
    if person.identity:
        return person.identity
    handle, _ = next_available_handle(db, handle_base(person.first_names, person.last_names))
    identity = Identity(
        person_id=person.id,
        handle=handle,
        hashed_password=hash_password(person.national_id),
        role=role,
        is_active=True,
    )
    db.add(identity)
    db.flush()
    return identity


def ensure_ministry(db: Session, name: str, description: str, creator: Identity) -> Ministry:
    ministry = db.query(Ministry).filter_by(name=name).first()
    if ministry:
        return ministry
    ministry = Ministry(name=name, description=description, is_active=True, created_by_id=creator.id)
    db.add(ministry)
    db.flush()
    return ministry


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        identities: dict[str, Identity] = {}
        pastor: Identity | None = None
        for data in DEMO_PEOPLE:
            person = ensure_person(db, data)
            identity = ensure_identity(db, person, data["role"])
            identities[identity.handle] = identity
            if data["role"] is IdentityRole.PASTOR and pastor is None:
                pastor = identity

        for name, description, leader_handles in DEMO_MINISTRIES:
            ministry = ensure_ministry(db, name, description, pastor)
            if ministry.leaderships:
                continue
            for handle in leader_handles:
                if handle in identities:
                    db.add(MinistryLeadership(ministry_id=ministry.id, identity_id=identities[handle].id))
        db.commit()
        for handle, identity in identities.items():
            print(f"{handle} ({IdentityRole(identity.role).value}) password = national ID")
    finally:
        db.close()


if __name__ == "__main__":
    main()
