"""Recommendation and analytics response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, UUID4

from .catalog import ItemRead


class RecommendationsResponse(BaseModel):
    based_on_access: List[ItemRead]
    trending: List[ItemRead]
    new_releases: List[ItemRead]
    similar_to_subscribed: List[ItemRead]


class CategoryStatsRead(BaseModel):
    category_id: UUID4
    name: str
    total_items: int
    accessible_items: int
    subscribed_items: int
    active_items: int
    access_rate: float
    engagement_rate: float
    completion_rate: float


class AnalyticsResponse(BaseModel):
    total_items: int
    accessible_items: int
    subscribed_items: int
    active_items: int
    coming_soon_items: int
    access_rate: float
    engagement_rate: float
    completion_rate: float
    category_stats: List[CategoryStatsRead]
    top_category: Optional[CategoryStatsRead] = None
    most_engaged_category: Optional[CategoryStatsRead] = None
