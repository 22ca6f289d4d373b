"""
Subscription endpoints for the signed-in caller.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.core.auth import get_store_view, require_user
from app.core.context import AccessContext
from app.services import subscriptions as subscription_service
from app.store import ScopedStore
from accessdesk_shared.schemas.subscriptions import (
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionWithTarget,
)

router = APIRouter()


@router.get("", response_model=List[SubscriptionWithTarget])
async def list_subscriptions(
    context: AccessContext = Depends(require_user),
    store: ScopedStore = Depends(get_store_view),
):
    """Subscriptions with an unseen-update flag per target."""
    return await subscription_service.list_subscriptions(store, context)


@router.post("", response_model=SubscriptionRead, status_code=201)
async def subscribe(
    body: SubscriptionCreate,
    context: AccessContext = Depends(require_user),
    store: ScopedStore = Depends(get_store_view),
):
    """Watch an item or a category. Subscribing twice is a no-op."""
    subscription = await subscription_service.subscribe(
        store, context, item_id=body.item_id, category_id=body.category_id
    )
    return SubscriptionRead.model_validate(subscription, from_attributes=True)


@router.delete("/{subscription_id}", status_code=204)
async def unsubscribe(
    subscription_id: uuid.UUID,
    context: AccessContext = Depends(require_user),
    store: ScopedStore = Depends(get_store_view),
):
    await subscription_service.unsubscribe(store, context, subscription_id)


@router.post("/{subscription_id}/seen", response_model=SubscriptionRead)
async def mark_seen(
    subscription_id: uuid.UUID,
    context: AccessContext = Depends(require_user),
    store: ScopedStore = Depends(get_store_view),
):
    subscription = await subscription_service.mark_seen(store, context, subscription_id)
    return SubscriptionRead.model_validate(subscription, from_attributes=True)


@router.delete("", status_code=204)
async def unsubscribe_target(
    item_id: Optional[uuid.UUID] = None,
    category_id: Optional[uuid.UUID] = None,
    context: AccessContext = Depends(require_user),
    store: ScopedStore = Depends(get_store_view),
):
    """Stop watching a target by its id rather than the subscription id."""
    await subscription_service.unsubscribe_target(
        store, context, item_id=item_id, category_id=category_id
    )
