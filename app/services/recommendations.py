"""
Recommendation engine.

Four independent ranked lists, recomputed on every call from the catalog, the
caller's access list and their subscribed items:

- based_on_access: inaccessible active items in categories the caller already
  has access to, ranked by how many accessible items that category holds
- trending: active items ranked by the size of their category (a popularity
  proxy, not usage telemetry)
- new_releases: active items, newest first
- similar_to_subscribed: unsubscribed active items in categories the caller
  subscribes to, ranked by subscription count in that category

Every ranking is a stable sort over items pre-ordered by display_order, so
equal scores always come out in the same order.
"""

from __future__ import annotations

import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import AbstractSet, Sequence

from app.models.item import Item
from accessdesk_shared.schemas.common import ItemStatus

DEFAULT_LIMIT = 3


@dataclass
class Recommendations:
    based_on_access: list[Item] = field(default_factory=list)
    trending: list[Item] = field(default_factory=list)
    new_releases: list[Item] = field(default_factory=list)
    similar_to_subscribed: list[Item] = field(default_factory=list)


def _by_display_order(items: Sequence[Item]) -> list[Item]:
    return sorted(items, key=lambda i: i.display_order)


def _is_active(item: Item) -> bool:
    return item.status == ItemStatus.ACTIVE.value


def compute_recommendations(
    items: Sequence[Item],
    access_list: AbstractSet[uuid.UUID],
    subscribed_item_ids: AbstractSet[uuid.UUID],
    limit: int = DEFAULT_LIMIT,
) -> Recommendations:
    ordered = _by_display_order(items)

    accessed_per_category = Counter(i.category_id for i in ordered if i.id in access_list)
    subscribed_per_category = Counter(
        i.category_id for i in ordered if i.id in subscribed_item_ids
    )
    category_size = Counter(i.category_id for i in ordered)

    based_on_access = sorted(
        (
            i
            for i in ordered
            if i.id not in access_list
            and _is_active(i)
            and accessed_per_category[i.category_id] > 0
        ),
        key=lambda i: accessed_per_category[i.category_id],
        reverse=True,
    )

    trending = sorted(
        (i for i in ordered if _is_active(i)),
        key=lambda i: category_size[i.category_id],
        reverse=True,
    )

    new_releases = sorted(
        (i for i in ordered if _is_active(i)),
        key=lambda i: i.created_at,
        reverse=True,
    )

    similar_to_subscribed = sorted(
        (
            i
            for i in ordered
            if i.id not in subscribed_item_ids
            and _is_active(i)
            and subscribed_per_category[i.category_id] > 0
        ),
        key=lambda i: subscribed_per_category[i.category_id],
        reverse=True,
    )

    return Recommendations(
        based_on_access=based_on_access[:limit],
        trending=trending[:limit],
        new_releases=new_releases[:limit],
        similar_to_subscribed=similar_to_subscribed[:limit],
    )
