"""
The six entity collections behind one session, plus the unit of work.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import StoreError
from app.models.access_request import AccessRequest
from app.models.category import Category
from app.models.item import Item
from app.models.profile import Profile
from app.models.subscription import Subscription
from app.models.user_access import UserAccess
from app.store.collection import Collection

log = structlog.get_logger()


class EntityStore:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.profiles: Collection[Profile] = Collection(session, Profile)
        self.categories: Collection[Category] = Collection(session, Category)
        self.items: Collection[Item] = Collection(session, Item)
        self.grants: Collection[UserAccess] = Collection(
            session, UserAccess, natural_keys=[("user_id", "item_id")]
        )
        self.requests: Collection[AccessRequest] = Collection(session, AccessRequest)
        self.subscriptions: Collection[Subscription] = Collection(
            session,
            Subscription,
            natural_keys=[("user_id", "item_id"), ("user_id", "category_id")],
        )

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator["EntityStore"]:
        """Commit everything written inside the block together, or nothing."""
        try:
            yield self
            await self.session.flush()
            await self.session.commit()
        except DBAPIError as exc:
            await self.session.rollback()
            log.error("store.unit_of_work_failed", error=str(exc))
            raise StoreError("Unit of work could not be committed") from exc
        except Exception:
            await self.session.rollback()
            raise
