"""Ministry leadership integrity and leadership credential issuance."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from slugify import slugify
from sqlalchemy import exists
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, joinedload

from church_admin.auth.security import Principal, hash_password
from church_admin.core.config import settings
from church_admin.core.db import unit_of_work
from church_admin.core.errors import (
    ConflictError,
    IncompleteDataError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from church_admin.models.identity import Identity, IdentityRole
from church_admin.models.ministry import Ministry, MinistryLeadership
from church_admin.models.person import Person
from church_admin.schemas.leadership import IdentitySummary, IssuedCredentials, PromotionOut
from church_admin.services import notifications
from church_admin.services.authorization import Action, authorize
from church_admin.services.completeness import display_name, ensure_person_complete, missing_leader_fields

logger = logging.getLogger(__name__)

ELIGIBLE_LEADER_ROLES = frozenset({IdentityRole.PASTOR, IdentityRole.LEADER})


@dataclass
class PromotionResult:
    identity: Identity
    created: bool
    role: IdentityRole
    previous_role: IdentityRole | None = None
    # plaintext initial credential, only set when a new identity was issued
    credential: str | None = None


def _load_ministry(db: Session, ministry_id: int) -> Ministry:
    ministry = (
        db.query(Ministry)
        .options(joinedload(Ministry.leaderships))
        .filter(Ministry.id == ministry_id)
        .first()
    )
    if not ministry:
        raise NotFoundError("Ministry not found", details={"ministry_id": ministry_id})
    return ministry


def _load_person(db: Session, person_id: int) -> Person:
    person = db.query(Person).filter(Person.id == person_id).first()
    if not person:
        raise NotFoundError("Person not found", details={"person_id": person_id})
    return person


def coerce_role(value: IdentityRole | str) -> IdentityRole:
    try:
        return IdentityRole(value)
    except ValueError as exc:
        allowed = ", ".join(role.value for role in IdentityRole)
        raise ValidationError(f"Invalid role; expected one of: {allowed}", field="role") from exc


def validate_leader_selection(identity_ids: Sequence[int]) -> list[int]:
    if len(identity_ids) == 0:
        raise ValidationError("Select at least one leader", field="identity_ids")
    if len(identity_ids) > settings.MAX_MINISTRY_LEADERS:
        raise ValidationError(
            f"A ministry cannot have more than {settings.MAX_MINISTRY_LEADERS} leaders",
            details={"field": "identity_ids", "max": settings.MAX_MINISTRY_LEADERS, "received": len(identity_ids)},
        )
    if len(set(identity_ids)) != len(identity_ids):
        raise ValidationError("Each leader can only be selected once", field="identity_ids")
    return list(identity_ids)


def incomplete_leader_details(identities: Iterable[Identity]) -> list[dict]:
    details = []
    for identity in identities:
        missing = missing_leader_fields(identity.person)
        if missing:
            details.append(
                {
                    "identity_id": identity.id,
                    "full_name": display_name(identity.person, fallback=identity.handle),
                    "missing_fields": missing,
                }
            )
    return details


def _delete_links(db: Session, ministry_id: int) -> None:
    db.query(MinistryLeadership).filter(MinistryLeadership.ministry_id == ministry_id).delete(
        synchronize_session="fetch"
    )


def _build_links(ministry_id: int, identity_ids: Sequence[int]) -> list[MinistryLeadership]:
    return [MinistryLeadership(ministry_id=ministry_id, identity_id=identity_id) for identity_id in identity_ids]


def lock_ministry_query(db: Session, ministry_id: int):
    return db.query(Ministry).filter(Ministry.id == ministry_id).with_for_update()


def replace_leadership(db: Session, ministry: Ministry, identity_ids: Sequence[int]) -> None:
    """Swap the ministry's whole leader set inside one transaction.

    The ministry row is locked first so concurrent replacements run one
    after the other. If anything fails after the old links are removed the
    transaction is rolled back and the previous leaders remain.
    """

    with unit_of_work(db, conflict_message="Ministry leadership was changed by another request; retry"):
        lock_ministry_query(db, ministry.id).one()
        db.expire(ministry, ["leaderships"])
        _delete_links(db, ministry.id)
        db.flush()
        db.add_all(_build_links(ministry.id, identity_ids))
        db.flush()
    db.expire(ministry, ["leaderships"])


def assign_leaders(db: Session, ministry_id: int, identity_ids: Sequence[int], principal: Principal) -> Ministry:
    authorize(db, principal, Action.ASSIGN_LEADERS, ministry_id=ministry_id)
    ministry = _load_ministry(db, ministry_id)
    selected = validate_leader_selection(identity_ids)

    identities = (
        db.query(Identity)
        .options(joinedload(Identity.person))
        .filter(Identity.id.in_(selected))
        .all()
    )
    by_id = {identity.id: identity for identity in identities}
    unknown = [identity_id for identity_id in selected if identity_id not in by_id]
    if unknown:
        raise ValidationError("One or more identities do not exist", details={"unknown_identity_ids": unknown})

    ordered = [by_id[identity_id] for identity_id in selected]
    ineligible = [identity.id for identity in ordered if IdentityRole(identity.role) not in ELIGIBLE_LEADER_ROLES]
    if ineligible:
        raise ValidationError(
            "Only identities with the Pastor or Leader role can lead a ministry",
            details={"ineligible_identity_ids": ineligible},
        )

    incomplete = incomplete_leader_details(ordered)
    if incomplete:
        raise IncompleteDataError("Some selected leaders have incomplete personal data", items=incomplete)

    previous_ids = [link.identity_id for link in ministry.leaderships]
    replace_leadership(db, ministry, selected)
    notifications.notify_ministry_leaders_replaced(ministry, previous_ids, selected, principal.identity_id)
    return ministry


def list_ministry_leaders(db: Session, ministry_id: int) -> list[Identity]:
    ministry = _load_ministry(db, ministry_id)
    return [link.identity for link in ministry.leaderships]


def list_identities(db: Session) -> list[Identity]:
    return db.query(Identity).options(joinedload(Identity.person)).order_by(Identity.handle.asc()).all()


def _first_token(value: str | None) -> str:
    parts = (value or "").split()
    return slugify(parts[0], separator="") if parts else ""


def handle_base(first_names: str, last_names: str) -> str:
    """``firstname.lastname`` from the first given name and first surname."""

    parts = [_first_token(first_names), _first_token(last_names)]
    return ".".join(part for part in parts if part) or "user"


def handle_candidate(base: str, suffix: int) -> str:
    return base if suffix == 0 else f"{base}{suffix}"


def handle_taken(db: Session, handle: str) -> bool:
    return bool(db.query(exists().where(Identity.handle == handle)).scalar())


def next_available_handle(db: Session, base: str, start: int = 0) -> tuple[str, int]:
    suffix = start
    while handle_taken(db, handle_candidate(base, suffix)):
        suffix += 1
    return handle_candidate(base, suffix), suffix


def _identity_for_person(db: Session, person_id: int) -> Identity | None:
    return db.query(Identity).filter(Identity.person_id == person_id).first()


def _change_role(db: Session, identity: Identity, role: IdentityRole, principal: Principal) -> PromotionResult:
    previous = IdentityRole(identity.role)
    if previous is not role:
        with unit_of_work(db):
            identity.role = role
        db.refresh(identity)
        notifications.notify_identity_role_changed(identity, previous, principal.identity_id)
    return PromotionResult(identity=identity, created=False, role=role, previous_role=previous)


def _issue_identity(db: Session, person: Person, role: IdentityRole, principal: Principal) -> PromotionResult:
    person_id = person.id
    base = handle_base(person.first_names, person.last_names)
    credential = person.national_id.strip()
    hashed = hash_password(credential)

    suffix = 0
    for attempt in range(1, settings.HANDLE_INSERT_ATTEMPTS + 1):
        handle, suffix = next_available_handle(db, base, start=suffix)
        identity = Identity(person_id=person_id, handle=handle, hashed_password=hashed, role=role, is_active=True)
        db.add(identity)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if _identity_for_person(db, person_id) is not None:
                raise ConflictError(
                    "This person was given an identity by another request; retry",
                    details={"person_id": person_id},
                )
            # the existence probe raced with another insert; move past this handle
            notifications.notify_handle_collision(handle, attempt)
            suffix += 1
            continue
        except OperationalError as exc:
            db.rollback()
            raise StoreUnavailableError() from exc

        db.refresh(identity)
        notifications.notify_identity_issued(identity, principal.identity_id)
        return PromotionResult(identity=identity, created=True, role=role, credential=credential)

    raise ConflictError("Could not reserve a unique login handle; retry", details={"handle_base": base})


def promote_to_role(db: Session, person_id: int, role: IdentityRole | str, principal: Principal) -> PromotionResult:
    authorize(db, principal, Action.PROMOTE_TO_ROLE)
    target_role = coerce_role(role)
    person = _load_person(db, person_id)
    ensure_person_complete(person)

    identity = _identity_for_person(db, person.id)
    if identity is not None:
        return _change_role(db, identity, target_role, principal)
    return _issue_identity(db, person, target_role, principal)


def summarize_identity(identity: Identity) -> IdentitySummary:
    return IdentitySummary(
        id=identity.id,
        handle=identity.handle,
        role=IdentityRole(identity.role),
        is_active=identity.is_active,
        person_id=identity.person_id,
        full_name=display_name(identity.person, fallback=identity.handle),
        missing_leader_fields=missing_leader_fields(identity.person),
    )


def serialize_promotion(result: PromotionResult) -> PromotionOut:
    credentials = None
    if result.credential is not None:
        credentials = IssuedCredentials(handle=result.identity.handle, password=result.credential)
    return PromotionOut(
        identity_id=result.identity.id,
        handle=result.identity.handle,
        role=result.role,
        created=result.created,
        previous_role=result.previous_role,
        credentials=credentials,
    )
