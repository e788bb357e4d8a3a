"""Single authorization predicate for every guarded operation.

Each action maps to one rule; call sites ask ``authorize`` instead of
comparing roles inline.
"""
from __future__ import annotations

import enum
from typing import Callable, Optional

from sqlalchemy import exists
from sqlalchemy.orm import Session

from church_admin.auth.security import Principal
from church_admin.core.errors import ForbiddenError
from church_admin.models.ministry import MinistryLeadership


class Action(str, enum.Enum):
    CREATE_EVENT = "create_event"
    EDIT_EVENT = "edit_event"
    REQUEST_REVIEW = "request_review"
    DECIDE_EVENT = "decide_event"
    CANCEL_EVENT = "cancel_event"
    ASSIGN_LEADERS = "assign_leaders"
    PROMOTE_TO_ROLE = "promote_to_role"
    MANAGE_MINISTRY = "manage_ministry"


def is_ministry_leader(db: Session, identity_id: int, ministry_id: int | None) -> bool:
    if ministry_id is None:
        return False
    query = db.query(
        exists().where(
            MinistryLeadership.ministry_id == ministry_id,
            MinistryLeadership.identity_id == identity_id,
        )
    )
    return bool(query.scalar())


def _pastor(db: Session, principal: Principal, ministry_id: int | None) -> bool:
    return principal.is_pastor


def _ministry_leader(db: Session, principal: Principal, ministry_id: int | None) -> bool:
    return is_ministry_leader(db, principal.identity_id, ministry_id)


def _pastor_or_ministry_leader(db: Session, principal: Principal, ministry_id: int | None) -> bool:
    return principal.is_pastor or is_ministry_leader(db, principal.identity_id, ministry_id)


Rule = Callable[[Session, Principal, Optional[int]], bool]

POLICY: dict[Action, tuple[Rule, str]] = {
    Action.CREATE_EVENT: (_pastor_or_ministry_leader, "Only a Pastor or a leader of this ministry can create events"),
    Action.EDIT_EVENT: (_pastor_or_ministry_leader, "Only a Pastor or a leader of this ministry can edit events"),
    Action.REQUEST_REVIEW: (_ministry_leader, "Only a leader of this ministry can send an event to review"),
    Action.DECIDE_EVENT: (_pastor, "Only a Pastor can approve or reject events"),
    Action.CANCEL_EVENT: (_pastor_or_ministry_leader, "Only a Pastor or a leader of this ministry can cancel events"),
    Action.ASSIGN_LEADERS: (_pastor, "Only a Pastor can assign ministry leaders"),
    Action.PROMOTE_TO_ROLE: (_pastor, "Only a Pastor can assign leadership roles"),
    Action.MANAGE_MINISTRY: (_pastor, "Only a Pastor can manage ministries"),
}


def authorize(db: Session, principal: Principal, action: Action, *, ministry_id: int | None = None) -> None:
    rule, message = POLICY[action]
    if not rule(db, principal, ministry_id):
        raise ForbiddenError(message, details={"action": action.value, "role": principal.role.value})
