from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from church_admin.core.config import settings
from church_admin.models.identity import Identity, IdentityRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as resolved against the store."""

    identity_id: int
    role: IdentityRole
    handle: str

    @property
    def is_pastor(self) -> bool:
        return self.role is IdentityRole.PASTOR


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # malformed hash
        return False


def create_access_token(*, subject: str, role: str, handle: str, expires_minutes: int | None = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": subject, "role": role, "handle": handle, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def verify_credential(db: Session, token: str) -> Principal | None:
    """Resolve a bearer credential to the identity it belongs to.

    The role is read from the stored identity, never trusted from the token,
    so a role change takes effect on the next request.
    """

    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError:
        return None

    try:
        identity_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None

    identity = db.get(Identity, identity_id)
    if identity is None or not identity.is_active:
        logger.info("credential_rejected", extra={"identity_id": identity_id})
        return None
    return Principal(identity_id=identity.id, role=IdentityRole(identity.role), handle=identity.handle)
