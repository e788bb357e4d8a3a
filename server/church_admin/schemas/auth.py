from typing import Optional

from pydantic import BaseModel, Field

from church_admin.models.identity import IdentityRole


class LoginRequest(BaseModel):
    login: str = Field(..., min_length=1, description="Handle, email or national ID")
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    identity_id: int
    handle: str
    role: IdentityRole
    full_name: str
    requires_password_change: bool = False


class WhoAmIResponse(BaseModel):
    id: int
    handle: str
    role: IdentityRole
    person_id: int
    full_name: Optional[str] = None
    ministry_ids: list[int] = []
