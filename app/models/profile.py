"""Profile model: one row per user identity."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Profile(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "profiles"

    email: str = Field(nullable=False, unique=True, index=True)
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str = Field(nullable=False, default="user")  # admin | user
    password_hash: Optional[str] = Field(default=None)  # bcrypt hash for local login
