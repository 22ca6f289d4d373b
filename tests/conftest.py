"""
Shared fixtures: an in-memory SQLite entity store and row factories.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core.context import AccessContext
from app.models.category import Category
from app.models.item import Item
from app.models.profile import Profile
from app.store import EntityStore, store_for
from accessdesk_shared.schemas.common import ItemStatus, Role


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def store(session) -> EntityStore:
    return EntityStore(session)


@pytest.fixture
def view(store):
    """Store view for a context, as the API boundary would pick it."""

    def _view(context: AccessContext):
        return store_for(context, store)

    return _view


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_profile(store):
    async def _make(role: Role = Role.USER, email: Optional[str] = None) -> Profile:
        async with store.atomic():
            profile, _ = await store.profiles.insert(
                Profile(
                    email=email or f"{uuid.uuid4().hex[:10]}@example.com",
                    role=role.value,
                )
            )
        return profile

    return _make


@pytest.fixture
def make_category(store):
    async def _make(name: Optional[str] = None, display_order: int = 0) -> Category:
        async with store.atomic():
            category, _ = await store.categories.insert(
                Category(name=name or f"cat-{uuid.uuid4().hex[:8]}", display_order=display_order)
            )
        return category

    return _make


@pytest.fixture
def make_item(store):
    async def _make(
        category: Category,
        title: Optional[str] = None,
        status: ItemStatus = ItemStatus.ACTIVE,
        display_order: int = 0,
        created_at: Optional[datetime] = None,
    ) -> Item:
        item = Item(
            title=title or f"item-{uuid.uuid4().hex[:8]}",
            url="https://tools.example.com/x",
            category_id=category.id,
            status=status.value,
            display_order=display_order,
        )
        if created_at is not None:
            item.created_at = created_at
        async with store.atomic():
            item, _ = await store.items.insert(item)
        return item

    return _make


@pytest.fixture
async def admin(make_profile) -> Profile:
    return await make_profile(Role.ADMIN)


@pytest.fixture
async def member(make_profile) -> Profile:
    return await make_profile(Role.USER)


@pytest.fixture
def admin_ctx(admin) -> AccessContext:
    return AccessContext.for_profile(admin)


@pytest.fixture
def member_ctx(member) -> AccessContext:
    return AccessContext.for_profile(member)
