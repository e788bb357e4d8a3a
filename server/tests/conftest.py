from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from collections.abc import Generator
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from church_admin.auth.deps import get_current_principal
from church_admin.auth.security import Principal, hash_password
from church_admin.core.db import Base, get_db
from church_admin.main import app
from church_admin.models.identity import Identity, IdentityRole
from church_admin.models.ministry import Ministry, MinistryLeadership
from church_admin.models.person import Person

SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(SQLALCHEMY_TEST_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def override_get_db() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def principal_for(identity: Identity) -> Principal:
    return Principal(identity_id=identity.id, role=IdentityRole(identity.role), handle=identity.handle)


@pytest.fixture()
def authorize(client: TestClient):
    def _apply(identity: Identity):
        principal = principal_for(identity)
        app.dependency_overrides[get_current_principal] = lambda: principal

    yield _apply
    app.dependency_overrides.pop(get_current_principal, None)


@pytest.fixture()
def make_person(db_session: Session):
    counter = {"value": 0}

    def _make(**overrides) -> Person:
        counter["value"] += 1
        n = counter["value"]
        data = {
            "first_names": "Ana Lucia",
            "last_names": "Vera Paz",
            "national_id": f"17000000{n:02d}",
            "email": f"person{n}@example.com",
            "phone": f"09900000{n:02d}",
            "gender": "Female",
            "birth_date": date(1990, 1, 1),
            "address": "Calle 8 y Olmedo",
        }
        data.update(overrides)
        person = Person(**data)
        db_session.add(person)
        db_session.commit()
        db_session.refresh(person)
        return person

    return _make


@pytest.fixture()
def make_identity(db_session: Session, make_person):
    def _make(role: IdentityRole = IdentityRole.LEADER, handle: str | None = None, person: Person | None = None, **person_fields) -> Identity:
        person = person or make_person(**person_fields)
        identity = Identity(
            person_id=person.id,
            handle=handle or f"user{person.id}",
            hashed_password=hash_password(person.national_id or "secret"),
            role=role,
            is_active=True,
        )
        db_session.add(identity)
        db_session.commit()
        db_session.refresh(identity)
        return identity

    return _make


@pytest.fixture()
def pastor(make_identity) -> Identity:
    return make_identity(IdentityRole.PASTOR, handle="samuel.rojas", first_names="Samuel", last_names="Rojas")


@pytest.fixture()
def leader(make_identity) -> Identity:
    return make_identity(IdentityRole.LEADER, handle="ana.vera")


@pytest.fixture()
def outsider(make_identity) -> Identity:
    return make_identity(IdentityRole.LEADER, handle="pedro.mora", first_names="Pedro", last_names="Mora")


@pytest.fixture()
def ministry(db_session: Session, pastor: Identity, leader: Identity) -> Ministry:
    record = Ministry(name="Youth", description="Youth ministry", is_active=True, created_by_id=pastor.id)
    db_session.add(record)
    db_session.flush()
    db_session.add(MinistryLeadership(ministry_id=record.id, identity_id=leader.id))
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture()
def empty_ministry(db_session: Session, pastor: Identity) -> Ministry:
    record = Ministry(name="Worship", is_active=True, created_by_id=pastor.id)
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture()
def pastor_principal(pastor: Identity) -> Principal:
    return principal_for(pastor)


@pytest.fixture()
def leader_principal(leader: Identity) -> Principal:
    return principal_for(leader)


@pytest.fixture()
def outsider_principal(outsider: Identity) -> Principal:
    return principal_for(outsider)
