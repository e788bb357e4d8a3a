from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from church_admin.auth.deps import get_current_principal
from church_admin.auth.security import Principal
from church_admin.core.db import get_db
from church_admin.schemas.common import Envelope
from church_admin.schemas.leadership import IdentitySummary, PromoteRequest, PromotionOut
from church_admin.services import leadership as leadership_service

router = APIRouter(prefix="/leaders", tags=["leaders"])


@router.get("", response_model=Envelope[list[IdentitySummary]])
def list_identities(
    db: Session = Depends(get_db),
    _: Principal = Depends(get_current_principal),
) -> Envelope[list[IdentitySummary]]:
    identities = leadership_service.list_identities(db)
    return Envelope(data=[leadership_service.summarize_identity(identity) for identity in identities])


@router.post("/assign-role", response_model=Envelope[PromotionOut])
def promote_to_role(
    payload: PromoteRequest,
    response: Response,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Envelope[PromotionOut]:
    result = leadership_service.promote_to_role(db, payload.person_id, payload.role, principal)
    if result.created:
        response.status_code = status.HTTP_201_CREATED
        message = f"Identity created as {result.role.value}"
    elif result.previous_role is result.role:
        message = f"Role is already {result.role.value}"
    else:
        message = f'Role updated from "{result.previous_role.value}" to "{result.role.value}"'
    return Envelope(message=message, data=leadership_service.serialize_promotion(result))
