"""Grant record (join table keyed by user and item)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import utcnow


class UserAccess(SQLModel, table=True):
    __tablename__ = "user_access"

    user_id: uuid.UUID = Field(foreign_key="profiles.id", primary_key=True)
    item_id: uuid.UUID = Field(foreign_key="items.id", primary_key=True)
    granted_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
    expires_at: Optional[datetime] = Field(
        default=None, sa_type=sa.DateTime(timezone=True)
    )
