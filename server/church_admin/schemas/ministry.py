from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from church_admin.schemas.leadership import IdentitySummary


class MinistryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    logo_path: Optional[str] = Field(None, max_length=255)


class MinistryOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    logo_path: Optional[str] = None
    is_active: bool
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    leaders: list[IdentitySummary] = []

    class Config:
        from_attributes = True
