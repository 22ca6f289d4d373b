"""Profile schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, UUID4

from .common import Role


class ProfileRead(BaseModel):
    id: UUID4
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Role
    created_at: datetime


class ProfileListResponse(BaseModel):
    data: List[ProfileRead]


class RoleUpdate(BaseModel):
    role: Role


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: Optional[str] = Field(default=None, max_length=200)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
