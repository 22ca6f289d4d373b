"""Access request model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class AccessRequest(UUIDMixin, SQLModel, table=True):
    __tablename__ = "access_requests"
    __table_args__ = (
        sa.Index(
            "uq_access_requests_pending",
            "user_id",
            "item_id",
            unique=True,
            postgresql_where=sa.text("status = 'pending'"),
            sqlite_where=sa.text("status = 'pending'"),
        ),
    )

    user_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    item_id: uuid.UUID = Field(foreign_key="items.id", nullable=False, index=True)
    status: str = Field(nullable=False, default="pending")  # pending | approved | denied
    request_message: Optional[str] = None
    admin_notes: Optional[str] = None
    requested_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
    resolved_at: Optional[datetime] = Field(
        default=None, sa_type=sa.DateTime(timezone=True)
    )
    resolved_by: Optional[uuid.UUID] = Field(default=None, foreign_key="profiles.id")
