"""Subscription schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, UUID4, model_validator


class SubscriptionCreate(BaseModel):
    """Watch exactly one item or exactly one category."""
    item_id: Optional[UUID4] = None
    category_id: Optional[UUID4] = None

    @model_validator(mode="after")
    def _exactly_one_target(self) -> "SubscriptionCreate":
        if (self.item_id is None) == (self.category_id is None):
            raise ValueError("Exactly one of item_id or category_id is required")
        return self


class SubscriptionRead(BaseModel):
    id: UUID4
    user_id: UUID4
    item_id: Optional[UUID4] = None
    category_id: Optional[UUID4] = None
    last_seen_update: datetime
    subscribed_at: datetime


class SubscriptionWithTarget(SubscriptionRead):
    target_title: Optional[str] = None
    target_updated_at: Optional[datetime] = None
    has_unseen_update: bool = False
