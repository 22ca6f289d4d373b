"""
Analytics aggregation over a caller's view of the catalog.

Rates are returned as precise percentages (0.0-100.0). A zero denominator
yields 0.0. Rounding is left to callers; ``display_percentage`` rounds the way
the dashboards show it.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from typing import AbstractSet, Optional, Sequence

from app.models.category import Category
from app.models.item import Item
from accessdesk_shared.schemas.common import ItemStatus


def _rate(part: int, total: int) -> float:
    return (part / total) * 100 if total > 0 else 0.0


def display_percentage(value: float) -> int:
    """Round half up, as the dashboard shows percentages."""
    return int(math.floor(value + 0.5))


@dataclass
class CategoryStats:
    category_id: uuid.UUID
    name: str
    total_items: int
    accessible_items: int
    subscribed_items: int
    active_items: int

    @property
    def access_rate(self) -> float:
        return _rate(self.accessible_items, self.total_items)

    @property
    def engagement_rate(self) -> float:
        return _rate(self.subscribed_items, self.total_items)

    @property
    def completion_rate(self) -> float:
        return _rate(self.active_items, self.total_items)


@dataclass
class Analytics:
    total_items: int
    accessible_items: int
    subscribed_items: int
    active_items: int
    coming_soon_items: int
    category_stats: list[CategoryStats] = field(default_factory=list)
    top_category: Optional[CategoryStats] = None
    most_engaged_category: Optional[CategoryStats] = None

    @property
    def access_rate(self) -> float:
        return _rate(self.accessible_items, self.total_items)

    @property
    def engagement_rate(self) -> float:
        return _rate(self.subscribed_items, self.total_items)

    @property
    def completion_rate(self) -> float:
        return _rate(self.active_items, self.total_items)


def compute_analytics(
    items: Sequence[Item],
    categories: Sequence[Category],
    access_list: AbstractSet[uuid.UUID],
    subscribed_item_ids: AbstractSet[uuid.UUID],
) -> Analytics:
    active = ItemStatus.ACTIVE.value

    stats = []
    for category in categories:
        members = [i for i in items if i.category_id == category.id]
        stats.append(
            CategoryStats(
                category_id=category.id,
                name=category.name,
                total_items=len(members),
                accessible_items=sum(1 for i in members if i.id in access_list),
                subscribed_items=sum(1 for i in members if i.id in subscribed_item_ids),
                active_items=sum(1 for i in members if i.status == active),
            )
        )

    # Two separate passes; neither ordering feeds the other.
    by_size = sorted(stats, key=lambda s: s.total_items, reverse=True)
    by_engagement = sorted(stats, key=lambda s: s.engagement_rate, reverse=True)

    return Analytics(
        total_items=len(items),
        accessible_items=sum(1 for i in items if i.id in access_list),
        subscribed_items=sum(1 for i in items if i.id in subscribed_item_ids),
        active_items=sum(1 for i in items if i.status == active),
        coming_soon_items=sum(
            1 for i in items if i.status == ItemStatus.COMING_SOON.value
        ),
        category_stats=by_size,
        top_category=by_size[0] if by_size else None,
        most_engaged_category=by_engagement[0] if by_engagement else None,
    )
