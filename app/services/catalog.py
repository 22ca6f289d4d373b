"""
Catalog service: category and item CRUD for administrators.

Input shape (required fields, absolute URLs) is validated by the request
schemas before anything here runs. This module enforces the rules that need
the store: unique category names, items pointing at an existing category,
and no category deletion while items still reference it.
"""

from __future__ import annotations

import uuid
from collections import Counter
from typing import Iterable

import structlog

from app.core.errors import ConflictError, NotFoundError, ReferentialIntegrityError
from app.models.category import Category
from app.models.item import Item
from app.store import PrivilegedStore, ScopedStore
from accessdesk_shared.schemas.catalog import (
    CategoryCreate,
    CategoryUpdate,
    ItemCreate,
    ItemUpdate,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_category_or_404(store: ScopedStore, category_id: uuid.UUID) -> Category:
    category = await store.get_category(category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


async def get_item_or_404(store: ScopedStore, item_id: uuid.UUID) -> Item:
    item = await store.get_item(item_id)
    if item is None:
        raise NotFoundError("Item not found")
    return item


async def _check_name_free(
    store: PrivilegedStore, name: str, exclude_id: uuid.UUID | None = None
) -> None:
    existing = await store.entities.categories.first({"name": name})
    if existing is not None and existing.id != exclude_id:
        raise ConflictError("A category with this name already exists")


async def _check_category_exists(store: ScopedStore, category_id: uuid.UUID) -> None:
    if await store.get_category(category_id) is None:
        raise ReferentialIntegrityError(
            "Item must reference an existing category",
            details={"category_id": str(category_id)},
        )


def category_item_counts(items: Iterable[Item]) -> dict[uuid.UUID, int]:
    """Number of items per category, for filter chips."""
    return dict(Counter(item.category_id for item in items))


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


async def create_category(store: PrivilegedStore, category_in: CategoryCreate) -> Category:
    await _check_name_free(store, category_in.name)
    async with store.atomic():
        category, _ = await store.entities.categories.insert(
            Category(**category_in.model_dump())
        )
    log.info("category.created", category_id=str(category.id), name=category.name)
    return category


async def update_category(
    store: PrivilegedStore, category_id: uuid.UUID, category_in: CategoryUpdate
) -> Category:
    await get_category_or_404(store, category_id)
    data = {
        k: v
        for k, v in category_in.model_dump(exclude_unset=True).items()
        if v is not None or k == "description"
    }
    if data.get("name"):
        await _check_name_free(store, data["name"], exclude_id=category_id)
    async with store.atomic():
        category = await store.entities.categories.update(category_id, data)
    log.info("category.updated", category_id=str(category_id))
    return category


async def delete_category(store: PrivilegedStore, category_id: uuid.UUID) -> None:
    await get_category_or_404(store, category_id)
    in_use = await store.entities.items.count({"category_id": category_id})
    if in_use:
        raise ReferentialIntegrityError(
            "Category still has items; move or delete them first",
            details={"category_id": str(category_id), "items": in_use},
        )
    async with store.atomic():
        await store.entities.subscriptions.delete_where({"category_id": category_id})
        await store.entities.categories.delete(category_id)
    log.info("category.deleted", category_id=str(category_id))


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


async def create_item(store: PrivilegedStore, item_in: ItemCreate) -> Item:
    await _check_category_exists(store, item_in.category_id)
    data = item_in.model_dump()
    data["status"] = item_in.status.value
    async with store.atomic():
        item, _ = await store.entities.items.insert(Item(**data))
    log.info("item.created", item_id=str(item.id), category_id=str(item.category_id))
    return item


async def update_item(
    store: PrivilegedStore, item_id: uuid.UUID, item_in: ItemUpdate
) -> Item:
    await get_item_or_404(store, item_id)
    # Only description may be cleared; a null anywhere else means "unchanged".
    data = {
        k: v
        for k, v in item_in.model_dump(exclude_unset=True).items()
        if v is not None or k == "description"
    }
    if data.get("category_id") is not None:
        await _check_category_exists(store, data["category_id"])
    if data.get("status") is not None:
        data["status"] = item_in.status.value
    async with store.atomic():
        item = await store.entities.items.update(item_id, data)
    log.info("item.updated", item_id=str(item_id), fields=sorted(data))
    return item


async def delete_item(store: PrivilegedStore, item_id: uuid.UUID) -> None:
    """Delete an item together with its grants, requests and subscriptions."""
    await get_item_or_404(store, item_id)
    entities = store.entities
    async with store.atomic():
        await entities.grants.delete_where({"item_id": item_id})
        await entities.requests.delete_where({"item_id": item_id})
        await entities.subscriptions.delete_where({"item_id": item_id})
        await entities.items.delete(item_id)
    log.info("item.deleted", item_id=str(item_id))
