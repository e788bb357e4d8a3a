from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from church_admin.models.identity import IdentityRole


class AssignLeadersRequest(BaseModel):
    identity_ids: list[int] = Field(default_factory=list)


class PromoteRequest(BaseModel):
    person_id: int
    role: IdentityRole


class IdentitySummary(BaseModel):
    id: int
    handle: str
    role: IdentityRole
    is_active: bool
    person_id: int
    full_name: str
    missing_leader_fields: list[str] = []


class IssuedCredentials(BaseModel):
    handle: str
    password: str


class PromotionOut(BaseModel):
    identity_id: int
    handle: str
    role: IdentityRole
    created: bool
    previous_role: Optional[IdentityRole] = None
    credentials: Optional[IssuedCredentials] = None
