"""
Catalog endpoints: categories and items.

Reads are open (anonymous callers see every item with has_access=false);
writes require an administrator.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.core.auth import get_access_context, get_privileged_store, get_store_view
from app.core.context import AccessContext
from app.services import catalog as catalog_service
from app.services.entitlements import load_items_with_access
from app.store import PrivilegedStore, ScopedStore
from accessdesk_shared.schemas.catalog import (
    CategoryCount,
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    ItemCreate,
    ItemRead,
    ItemUpdate,
    ItemWithAccess,
)

router = APIRouter()


def _category(row) -> CategoryRead:
    return CategoryRead.model_validate(row, from_attributes=True)


def _item(row) -> ItemRead:
    return ItemRead.model_validate(row, from_attributes=True)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


@router.get("/categories", response_model=List[CategoryRead], tags=["Catalog"])
async def list_categories(store: ScopedStore = Depends(get_store_view)):
    """Categories in display order."""
    return [_category(c) for c in await store.list_categories()]


@router.get("/categories/counts", response_model=List[CategoryCount], tags=["Catalog"])
async def category_counts(store: ScopedStore = Depends(get_store_view)):
    """Item count per category."""
    counts = catalog_service.category_item_counts(await store.list_items())
    return [
        CategoryCount(category_id=c.id, item_count=counts.get(c.id, 0))
        for c in await store.list_categories()
    ]


@router.post("/categories", response_model=CategoryRead, status_code=201, tags=["Catalog"])
async def create_category(
    body: CategoryCreate,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    return _category(await catalog_service.create_category(store, body))


@router.patch("/categories/{category_id}", response_model=CategoryRead, tags=["Catalog"])
async def update_category(
    category_id: uuid.UUID,
    body: CategoryUpdate,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    return _category(await catalog_service.update_category(store, category_id, body))


@router.delete("/categories/{category_id}", status_code=204, tags=["Catalog"])
async def delete_category(
    category_id: uuid.UUID,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    """Delete an empty category. Fails while items still reference it."""
    await catalog_service.delete_category(store, category_id)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


@router.get("/items", response_model=List[ItemWithAccess], tags=["Catalog"])
async def list_items(
    category_id: Optional[uuid.UUID] = None,
    context: AccessContext = Depends(get_access_context),
    store: ScopedStore = Depends(get_store_view),
):
    """Items decorated with the caller's has_access / is_subscribed flags."""
    return await load_items_with_access(store, context, category_id)


@router.get("/items/{item_id}", response_model=ItemRead, tags=["Catalog"])
async def get_item(item_id: uuid.UUID, store: ScopedStore = Depends(get_store_view)):
    return _item(await catalog_service.get_item_or_404(store, item_id))


@router.post("/items", response_model=ItemRead, status_code=201, tags=["Catalog"])
async def create_item(
    body: ItemCreate,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    return _item(await catalog_service.create_item(store, body))


@router.patch("/items/{item_id}", response_model=ItemRead, tags=["Catalog"])
async def update_item(
    item_id: uuid.UUID,
    body: ItemUpdate,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    return _item(await catalog_service.update_item(store, item_id, body))


@router.delete("/items/{item_id}", status_code=204, tags=["Catalog"])
async def delete_item(
    item_id: uuid.UUID,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    """Delete an item and everything that references it."""
    await catalog_service.delete_item(store, item_id)
