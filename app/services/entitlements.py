"""
Entitlement resolution: can this caller open this item?

Rules, in order:
- anonymous callers are entitled to nothing
- admins are entitled to every item, whatever the grant table says
- everyone else is entitled to exactly the items they hold an effective grant on

A grant whose ``expires_at`` lies in the past is not effective (unless expiry
enforcement is switched off in settings).

The pure functions here work on data already in memory; the async loaders at
the bottom fetch that data through a store view.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable, Optional, Sequence

from app.core.config import get_settings
from app.core.context import AccessContext
from app.models.base import as_naive_utc, utcnow
from app.models.item import Item
from app.models.subscription import Subscription
from app.models.user_access import UserAccess
from app.store import ScopedStore
from accessdesk_shared.schemas.catalog import ItemWithAccess


# ---------------------------------------------------------------------------
# Pure resolution
# ---------------------------------------------------------------------------


def grant_is_effective(
    grant: UserAccess,
    now: Optional[datetime] = None,
    *,
    enforce_expiry: Optional[bool] = None,
) -> bool:
    if enforce_expiry is None:
        enforce_expiry = get_settings().enforce_grant_expiry
    if not enforce_expiry or grant.expires_at is None:
        return True
    return as_naive_utc(grant.expires_at) > as_naive_utc(now or utcnow())


def _granted_item_ids(
    context: AccessContext,
    grants: Iterable[UserAccess],
    now: Optional[datetime],
    enforce_expiry: Optional[bool],
) -> set[uuid.UUID]:
    now = now or utcnow()
    return {
        g.item_id
        for g in grants
        if g.user_id == context.user_id
        and grant_is_effective(g, now, enforce_expiry=enforce_expiry)
    }


def resolve(
    context: AccessContext,
    item_id: uuid.UUID,
    grants: Iterable[UserAccess],
    now: Optional[datetime] = None,
    *,
    enforce_expiry: Optional[bool] = None,
) -> bool:
    """Resolve one (caller, item) pair against the caller's grants."""
    if not context.is_authenticated:
        return False
    if context.is_admin:
        return True
    return item_id in _granted_item_ids(context, grants, now, enforce_expiry)


def access_list(
    context: AccessContext,
    items: Iterable[Item],
    grants: Iterable[UserAccess],
    now: Optional[datetime] = None,
    *,
    enforce_expiry: Optional[bool] = None,
) -> set[uuid.UUID]:
    """Batch form of ``resolve``: the ids of every item the caller may open."""
    if not context.is_authenticated:
        return set()
    if context.is_admin:
        return {item.id for item in items}
    granted = _granted_item_ids(context, grants, now, enforce_expiry)
    return {item.id for item in items if item.id in granted}


def decorate_items(
    items: Sequence[Item],
    context: AccessContext,
    grants: Iterable[UserAccess],
    subscriptions: Iterable[Subscription] = (),
    now: Optional[datetime] = None,
    *,
    enforce_expiry: Optional[bool] = None,
) -> list[ItemWithAccess]:
    allowed = access_list(context, items, grants, now, enforce_expiry=enforce_expiry)
    subscribed = {
        s.item_id
        for s in subscriptions
        if s.item_id is not None and s.user_id == context.user_id
    }
    return [
        ItemWithAccess(
            id=item.id,
            title=item.title,
            description=item.description,
            url=item.url,
            category_id=item.category_id,
            status=item.status,
            display_order=item.display_order,
            created_at=item.created_at,
            updated_at=item.updated_at,
            has_access=item.id in allowed,
            is_subscribed=item.id in subscribed,
        )
        for item in items
    ]


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


async def _caller_grants(store: ScopedStore, context: AccessContext) -> list[UserAccess]:
    if not context.is_authenticated or context.is_admin:
        return []
    return await store.grants_for(context.user_id)


async def resolve_access(store: ScopedStore, context: AccessContext) -> set[uuid.UUID]:
    """Fetch once, then resolve every item against the caller's access list."""
    items = await store.list_items()
    grants = await _caller_grants(store, context)
    return access_list(context, items, grants)


async def subscribed_item_ids(store: ScopedStore, context: AccessContext) -> set[uuid.UUID]:
    if not context.is_authenticated:
        return set()
    subscriptions = await store.subscriptions_for(context.user_id)
    return {s.item_id for s in subscriptions if s.item_id is not None}


async def load_items_with_access(
    store: ScopedStore,
    context: AccessContext,
    category_id: Optional[uuid.UUID] = None,
) -> list[ItemWithAccess]:
    items = await store.list_items(category_id)
    grants = await _caller_grants(store, context)
    subscriptions: list[Subscription] = []
    if context.is_authenticated:
        subscriptions = await store.subscriptions_for(context.user_id)
    return decorate_items(items, context, grants, subscriptions)
