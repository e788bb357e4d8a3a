from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from church_admin.auth.deps import get_current_principal
from church_admin.auth.security import Principal
from church_admin.core.db import get_db
from church_admin.schemas.common import Envelope
from church_admin.schemas.leadership import AssignLeadersRequest, IdentitySummary
from church_admin.schemas.ministry import MinistryCreate, MinistryOut
from church_admin.services import leadership as leadership_service
from church_admin.services import ministries as ministries_service

router = APIRouter(prefix="/ministries", tags=["ministries"])


@router.get("", response_model=Envelope[list[MinistryOut]])
def list_ministries(
    include_inactive: bool = Query(default=True),
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
) -> Envelope[list[MinistryOut]]:
    items = ministries_service.list_ministries(db, include_inactive=include_inactive)
    return Envelope(data=[ministries_service.serialize_ministry(item) for item in items])


@router.post("", response_model=Envelope[MinistryOut], status_code=status.HTTP_201_CREATED)
def create_ministry(
    payload: MinistryCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Envelope[MinistryOut]:
    ministry = ministries_service.create_ministry(db, payload, principal)
    return Envelope(message="Ministry created", data=ministries_service.serialize_ministry(ministry))


@router.get("/{ministry_id}", response_model=Envelope[MinistryOut])
def get_ministry(
    ministry_id: int,
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
) -> Envelope[MinistryOut]:
    ministry = ministries_service.get_ministry(db, ministry_id)
    return Envelope(data=ministries_service.serialize_ministry(ministry))


@router.post("/{ministry_id}/disable", response_model=Envelope[MinistryOut])
def disable_ministry(
    ministry_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Envelope[MinistryOut]:
    ministry = ministries_service.disable_ministry(db, ministry_id, principal)
    return Envelope(message="Ministry disabled", data=ministries_service.serialize_ministry(ministry))


@router.get("/{ministry_id}/leaders", response_model=Envelope[list[IdentitySummary]])
def list_ministry_leaders(
    ministry_id: int,
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
) -> Envelope[list[IdentitySummary]]:
    leaders = leadership_service.list_ministry_leaders(db, ministry_id)
    return Envelope(data=[leadership_service.summarize_identity(identity) for identity in leaders])


@router.put("/{ministry_id}/leaders", response_model=Envelope[MinistryOut])
def assign_leaders(
    ministry_id: int,
    payload: AssignLeadersRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Envelope[MinistryOut]:
    leadership_service.assign_leaders(db, ministry_id, payload.identity_ids, principal)
    ministry = ministries_service.get_ministry(db, ministry_id)
    count = len(payload.identity_ids)
    message = f"{count} leader{'s' if count > 1 else ''} assigned"
    return Envelope(message=message, data=ministries_service.serialize_ministry(ministry))
