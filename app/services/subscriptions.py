"""
Subscription tracking: watch an item or a category, and notice when it
changed since the subscriber last looked.

Freshness is a plain timestamp comparison against the target's
``updated_at`` as last fetched; nothing here polls or pushes.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import structlog

from app.core.context import AccessContext
from app.core.errors import AuthenticationError, NotFoundError, ValidationError
from app.models.base import as_naive_utc, utcnow
from app.models.subscription import Subscription
from app.store import ScopedStore
from accessdesk_shared.schemas.subscriptions import SubscriptionWithTarget

log = structlog.get_logger()


def _require_user(context: AccessContext) -> uuid.UUID:
    if not context.is_authenticated:
        raise AuthenticationError("Sign in to manage subscriptions")
    return context.user_id


def _check_single_target(
    item_id: Optional[uuid.UUID], category_id: Optional[uuid.UUID]
) -> None:
    if (item_id is None) == (category_id is None):
        raise ValidationError("Exactly one of item_id or category_id is required")


def has_unseen_update(
    subscription: Subscription, target_updated_at: Optional[datetime]
) -> bool:
    if target_updated_at is None:
        return False
    return as_naive_utc(target_updated_at) > as_naive_utc(subscription.last_seen_update)


async def subscribe(
    store: ScopedStore,
    context: AccessContext,
    *,
    item_id: Optional[uuid.UUID] = None,
    category_id: Optional[uuid.UUID] = None,
) -> Subscription:
    """Watch a target. Subscribing twice returns the existing subscription."""
    user_id = _require_user(context)
    _check_single_target(item_id, category_id)

    if item_id is not None and await store.get_item(item_id) is None:
        raise NotFoundError("Item not found")
    if category_id is not None and await store.get_category(category_id) is None:
        raise NotFoundError("Category not found")

    async with store.atomic():
        subscription, created = await store.add_subscription(
            Subscription(user_id=user_id, item_id=item_id, category_id=category_id)
        )

    if created:
        log.info(
            "subscription.created",
            subscription_id=str(subscription.id),
            user_id=str(user_id),
            item_id=str(item_id) if item_id else None,
            category_id=str(category_id) if category_id else None,
        )
    return subscription


async def unsubscribe(
    store: ScopedStore, context: AccessContext, subscription_id: uuid.UUID
) -> bool:
    """Delete a subscription. An unknown id is not an error."""
    _require_user(context)
    async with store.atomic():
        removed = await store.remove_subscriptions(id=subscription_id)
    if removed:
        log.info("subscription.removed", subscription_id=str(subscription_id))
    return removed > 0


async def unsubscribe_target(
    store: ScopedStore,
    context: AccessContext,
    *,
    item_id: Optional[uuid.UUID] = None,
    category_id: Optional[uuid.UUID] = None,
) -> bool:
    user_id = _require_user(context)
    _check_single_target(item_id, category_id)
    target = {"item_id": item_id} if item_id is not None else {"category_id": category_id}
    async with store.atomic():
        removed = await store.remove_subscriptions(user_id=user_id, **target)
    return removed > 0


async def mark_seen(
    store: ScopedStore,
    context: AccessContext,
    subscription_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> Subscription:
    _require_user(context)
    async with store.atomic():
        subscription = await store.update_subscription(
            subscription_id, {"last_seen_update": now or utcnow()}
        )
    if subscription is None:
        raise NotFoundError("Subscription not found")
    return subscription


async def list_subscriptions(
    store: ScopedStore, context: AccessContext
) -> list[SubscriptionWithTarget]:
    """The caller's subscriptions with target title and unseen-update flag."""
    user_id = _require_user(context)
    subscriptions = await store.subscriptions_for(user_id)

    rows = []
    for sub in subscriptions:
        target = (
            await store.get_item(sub.item_id)
            if sub.item_id is not None
            else await store.get_category(sub.category_id)
        )
        title = None
        updated_at = None
        if target is not None:
            title = getattr(target, "title", None) or getattr(target, "name", None)
            updated_at = target.updated_at
        rows.append(
            SubscriptionWithTarget(
                id=sub.id,
                user_id=sub.user_id,
                item_id=sub.item_id,
                category_id=sub.category_id,
                last_seen_update=sub.last_seen_update,
                subscribed_at=sub.subscribed_at,
                target_title=title,
                target_updated_at=updated_at,
                has_unseen_update=has_unseen_update(sub, updated_at),
            )
        )
    return rows
