from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from church_admin.models.event import EventState


class EventCreate(BaseModel):
    ministry_id: int
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)


class EventUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    expected_version: Optional[int] = Field(None, ge=1)


class EventTransitionRequest(BaseModel):
    expected_version: Optional[int] = Field(None, ge=1)


class EventDecision(BaseModel):
    approve: bool
    reason: Optional[str] = Field(None, max_length=500)
    expected_version: Optional[int] = Field(None, ge=1)


class EventOut(BaseModel):
    id: int
    ministry_id: int
    name: str
    description: Optional[str] = None
    starts_at: datetime
    ends_at: Optional[datetime] = None
    location: Optional[str] = None
    is_active: bool
    state: EventState
    rejection_reason: Optional[str] = None
    version: int
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
