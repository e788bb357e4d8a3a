from __future__ import annotations

from sqlalchemy.orm import Session, selectinload

from church_admin.auth.security import Principal
from church_admin.core.db import unit_of_work
from church_admin.core.errors import ConflictError, NotFoundError, ValidationError
from church_admin.models.ministry import Ministry, MinistryLeadership
from church_admin.schemas.ministry import MinistryCreate, MinistryOut
from church_admin.services.authorization import Action, authorize
from church_admin.services.leadership import summarize_identity


def serialize_ministry(ministry: Ministry) -> MinistryOut:
    return MinistryOut(
        id=ministry.id,
        name=ministry.name,
        description=ministry.description,
        logo_path=ministry.logo_path,
        is_active=ministry.is_active,
        created_by_id=ministry.created_by_id,
        created_at=ministry.created_at,
        updated_at=ministry.updated_at,
        leaders=[summarize_identity(link.identity) for link in ministry.leaderships],
    )


def get_ministry(db: Session, ministry_id: int) -> Ministry:
    ministry = (
        db.query(Ministry)
        .options(selectinload(Ministry.leaderships).joinedload(MinistryLeadership.identity))
        .filter(Ministry.id == ministry_id)
        .first()
    )
    if not ministry:
        raise NotFoundError("Ministry not found", details={"ministry_id": ministry_id})
    return ministry


def list_ministries(db: Session, *, include_inactive: bool = True) -> list[Ministry]:
    query = db.query(Ministry).options(selectinload(Ministry.leaderships).joinedload(MinistryLeadership.identity))
    if not include_inactive:
        query = query.filter(Ministry.is_active.is_(True))
    return query.order_by(Ministry.name.asc()).all()


def create_ministry(db: Session, payload: MinistryCreate, principal: Principal) -> Ministry:
    authorize(db, principal, Action.MANAGE_MINISTRY)
    name = payload.name.strip()
    if not name:
        raise ValidationError("Ministry name is required", field="name")
    # names are unique exactly as stored
    if db.query(Ministry.id).filter(Ministry.name == name).first():
        raise ConflictError("A ministry with this name already exists", details={"field": "name"})

    ministry = Ministry(
        name=name,
        description=payload.description.strip() if payload.description else None,
        logo_path=payload.logo_path,
        is_active=True,
        created_by_id=principal.identity_id,
    )
    with unit_of_work(db, conflict_message="A ministry with this name already exists"):
        db.add(ministry)
    return get_ministry(db, ministry.id)


def disable_ministry(db: Session, ministry_id: int, principal: Principal) -> Ministry:
    authorize(db, principal, Action.MANAGE_MINISTRY, ministry_id=ministry_id)
    ministry = get_ministry(db, ministry_id)
    if ministry.is_active:
        with unit_of_work(db):
            ministry.is_active = False
    return ministry
