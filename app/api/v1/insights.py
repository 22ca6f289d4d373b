"""
Derived signals for the caller: recommendations and analytics.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.auth import get_access_context, get_store_view
from app.core.config import get_settings
from app.core.context import AccessContext
from app.services.analytics import CategoryStats, compute_analytics
from app.services.entitlements import resolve_access, subscribed_item_ids
from app.services.recommendations import compute_recommendations
from app.store import ScopedStore
from accessdesk_shared.schemas.catalog import ItemRead
from accessdesk_shared.schemas.insights import (
    AnalyticsResponse,
    CategoryStatsRead,
    RecommendationsResponse,
)

router = APIRouter()
settings = get_settings()


def _items(rows) -> list[ItemRead]:
    return [ItemRead.model_validate(r, from_attributes=True) for r in rows]


def _stats(stats: CategoryStats | None) -> CategoryStatsRead | None:
    if stats is None:
        return None
    return CategoryStatsRead(
        category_id=stats.category_id,
        name=stats.name,
        total_items=stats.total_items,
        accessible_items=stats.accessible_items,
        subscribed_items=stats.subscribed_items,
        active_items=stats.active_items,
        access_rate=stats.access_rate,
        engagement_rate=stats.engagement_rate,
        completion_rate=stats.completion_rate,
    )


@router.get("/recommendations", response_model=RecommendationsResponse)
async def recommendations(
    context: AccessContext = Depends(get_access_context),
    store: ScopedStore = Depends(get_store_view),
):
    items = await store.list_items()
    result = compute_recommendations(
        items,
        await resolve_access(store, context),
        await subscribed_item_ids(store, context),
        limit=settings.recommendation_limit,
    )
    return RecommendationsResponse(
        based_on_access=_items(result.based_on_access),
        trending=_items(result.trending),
        new_releases=_items(result.new_releases),
        similar_to_subscribed=_items(result.similar_to_subscribed),
    )


@router.get("/analytics", response_model=AnalyticsResponse)
async def analytics(
    context: AccessContext = Depends(get_access_context),
    store: ScopedStore = Depends(get_store_view),
):
    """Precise percentages; clients round for display."""
    report = compute_analytics(
        await store.list_items(),
        await store.list_categories(),
        await resolve_access(store, context),
        await subscribed_item_ids(store, context),
    )
    return AnalyticsResponse(
        total_items=report.total_items,
        accessible_items=report.accessible_items,
        subscribed_items=report.subscribed_items,
        active_items=report.active_items,
        coming_soon_items=report.coming_soon_items,
        access_rate=report.access_rate,
        engagement_rate=report.engagement_rate,
        completion_rate=report.completion_rate,
        category_stats=[_stats(s) for s in report.category_stats],
        top_category=_stats(report.top_category),
        most_engaged_category=_stats(report.most_engaged_category),
    )
