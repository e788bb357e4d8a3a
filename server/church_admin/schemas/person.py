from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, validator

PersonGender = Literal["Male", "Female", "Other"]


class PersonBase(BaseModel):
    first_names: str = Field(..., min_length=1, max_length=120)
    last_names: str = Field(..., min_length=1, max_length=120)
    national_id: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=25)
    gender: Optional[PersonGender] = None
    birth_date: Optional[date] = None
    address: Optional[str] = Field(None, max_length=255)
    education_level: Optional[str] = Field(None, max_length=120)
    occupation: Optional[str] = Field(None, max_length=120)

    @validator("birth_date")
    def validate_birth_date(cls, value: Optional[date]) -> Optional[date]:
        if value and value > date.today():
            raise ValueError("Birth date cannot be in the future")
        return value


class PersonCreate(PersonBase):
    pass


class PersonUpdate(BaseModel):
    first_names: Optional[str] = Field(None, min_length=1, max_length=120)
    last_names: Optional[str] = Field(None, min_length=1, max_length=120)
    national_id: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=25)
    gender: Optional[PersonGender] = None
    birth_date: Optional[date] = None
    address: Optional[str] = Field(None, max_length=255)
    education_level: Optional[str] = Field(None, max_length=120)
    occupation: Optional[str] = Field(None, max_length=120)


class PersonOut(PersonBase):
    id: int
    email: Optional[str] = None
    missing_leader_fields: list[str] = []
    identity_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
