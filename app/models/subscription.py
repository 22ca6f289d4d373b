"""Subscription model: a user watching exactly one item or one category."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class Subscription(UUIDMixin, SQLModel, table=True):
    __tablename__ = "subscriptions"
    __table_args__ = (
        sa.CheckConstraint(
            "(item_id IS NULL) <> (category_id IS NULL)",
            name="ck_subscriptions_single_target",
        ),
        sa.Index(
            "uq_subscriptions_user_item",
            "user_id",
            "item_id",
            unique=True,
            postgresql_where=sa.text("item_id IS NOT NULL"),
            sqlite_where=sa.text("item_id IS NOT NULL"),
        ),
        sa.Index(
            "uq_subscriptions_user_category",
            "user_id",
            "category_id",
            unique=True,
            postgresql_where=sa.text("category_id IS NOT NULL"),
            sqlite_where=sa.text("category_id IS NOT NULL"),
        ),
    )

    user_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    item_id: Optional[uuid.UUID] = Field(default=None, foreign_key="items.id")
    category_id: Optional[uuid.UUID] = Field(default=None, foreign_key="categories.id")
    last_seen_update: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
    subscribed_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
