import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from church_admin.auth.deps import get_current_principal
from church_admin.auth.security import Principal, create_access_token, verify_password
from church_admin.core.config import settings
from church_admin.core.db import get_db
from church_admin.models.identity import Identity, IdentityRole
from church_admin.models.ministry import MinistryLeadership
from church_admin.models.person import Person
from church_admin.schemas.auth import LoginRequest, TokenResponse, WhoAmIResponse
from church_admin.schemas.common import Envelope
from church_admin.services.completeness import display_name

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)


def _find_identity(db: Session, login: str) -> Identity | None:
    identity = db.query(Identity).filter(Identity.handle == login).first()
    if identity:
        return identity
    # email is not unique across people; only those with an identity can sign in
    return (
        db.query(Identity)
        .join(Person, Identity.person_id == Person.id)
        .filter(or_(Person.email == login, Person.national_id == login))
        .order_by(Identity.id.asc())
        .first()
    )


@router.post("/login", response_model=Envelope[TokenResponse])
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)) -> Envelope[TokenResponse]:
    login_value = payload.login.strip()
    identity = _find_identity(db, login_value)
    if not identity or not verify_password(payload.password, identity.hashed_password):
        logger.info("login_failed", extra={"login": login_value})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid handle or password")
    if not identity.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive identity")

    national_id = identity.person.national_id if identity.person else None
    requires_password_change = bool(national_id) and verify_password(national_id, identity.hashed_password)

    identity.last_login_at = datetime.utcnow()
    db.commit()

    role = IdentityRole(identity.role)
    token = create_access_token(subject=str(identity.id), role=role.value, handle=identity.handle)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT != "local",
    )
    logger.info("login_succeeded", extra={"identity_id": identity.id})
    return Envelope(
        message="Signed in",
        data=TokenResponse(
            access_token=token,
            identity_id=identity.id,
            handle=identity.handle,
            role=role,
            full_name=display_name(identity.person, fallback=identity.handle),
            requires_password_change=requires_password_change,
        ),
    )


@router.get("/whoami", response_model=Envelope[WhoAmIResponse])
def whoami(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)) -> Envelope[WhoAmIResponse]:
    identity = db.get(Identity, principal.identity_id)
    ministry_ids = [
        row.ministry_id
        for row in db.query(MinistryLeadership.ministry_id)
        .filter(MinistryLeadership.identity_id == principal.identity_id)
        .order_by(MinistryLeadership.ministry_id.asc())
        .all()
    ]
    return Envelope(
        data=WhoAmIResponse(
            id=identity.id,
            handle=identity.handle,
            role=principal.role,
            person_id=identity.person_id,
            full_name=display_name(identity.person, fallback=identity.handle),
            ministry_ids=ministry_ids,
        )
    )
