"""
Role-selected views over the entity store.

``ScopedStore`` is what a regular member gets: catalog reads plus their own
grants, requests and subscriptions. ``PrivilegedStore`` lifts the ownership
restriction and exposes the raw collections for administrative writes. The
view is chosen from the caller's role at the boundary (``store_for``), never
from which credentials happen to be configured.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from app.core.context import AccessContext
from app.core.errors import AuthenticationError, PermissionDeniedError
from app.models.access_request import AccessRequest
from app.models.category import Category
from app.models.item import Item
from app.models.profile import Profile
from app.models.subscription import Subscription
from app.models.user_access import UserAccess
from app.store.entities import EntityStore


class ScopedStore:
    def __init__(self, store: EntityStore, user_id: Optional[uuid.UUID]):
        self._store = store
        self.user_id = user_id

    def atomic(self):
        return self._store.atomic()

    def _check_owner(self, user_id: Optional[uuid.UUID]) -> None:
        if self.user_id is None:
            raise AuthenticationError("Authentication required")
        if user_id != self.user_id:
            raise PermissionDeniedError("Cannot act on another user's records")

    def _owner_filter(self) -> dict[str, Any]:
        if self.user_id is None:
            raise AuthenticationError("Authentication required")
        return {"user_id": self.user_id}

    # -- catalog ---------------------------------------------------------

    async def list_categories(self) -> list[Category]:
        return await self._store.categories.list_all(order_by=("display_order", "name"))

    async def get_category(self, category_id: uuid.UUID) -> Optional[Category]:
        return await self._store.categories.get_by_id(category_id)

    async def list_items(self, category_id: Optional[uuid.UUID] = None) -> list[Item]:
        filters = {"category_id": category_id} if category_id else None
        return await self._store.items.list_all(filters, order_by=("display_order", "title"))

    async def get_item(self, item_id: uuid.UUID) -> Optional[Item]:
        return await self._store.items.get_by_id(item_id)

    # -- grants ----------------------------------------------------------

    async def grants_for(self, user_id: uuid.UUID) -> list[UserAccess]:
        self._check_owner(user_id)
        return await self._store.grants.list_all({"user_id": user_id})

    # -- access requests -------------------------------------------------

    async def requests_for(
        self, user_id: uuid.UUID, status: Optional[str] = None
    ) -> list[AccessRequest]:
        self._check_owner(user_id)
        filters: dict[str, Any] = {"user_id": user_id}
        if status:
            filters["status"] = status
        return await self._store.requests.list_all(filters, order_by=("-requested_at",))

    async def get_request(self, request_id: uuid.UUID) -> Optional[AccessRequest]:
        request = await self._store.requests.get_by_id(request_id)
        if request is not None:
            self._check_owner(request.user_id)
        return request

    async def add_request(self, request: AccessRequest) -> AccessRequest:
        self._check_owner(request.user_id)
        row, _ = await self._store.requests.insert(request)
        return row

    # -- subscriptions ---------------------------------------------------

    async def subscriptions_for(self, user_id: uuid.UUID) -> list[Subscription]:
        self._check_owner(user_id)
        return await self._store.subscriptions.list_all(
            {"user_id": user_id}, order_by=("-subscribed_at",)
        )

    async def get_subscription(self, subscription_id: uuid.UUID) -> Optional[Subscription]:
        subscription = await self._store.subscriptions.get_by_id(subscription_id)
        if subscription is not None:
            self._check_owner(subscription.user_id)
        return subscription

    async def add_subscription(self, subscription: Subscription) -> tuple[Subscription, bool]:
        self._check_owner(subscription.user_id)
        return await self._store.subscriptions.insert(subscription)

    async def update_subscription(
        self, subscription_id: uuid.UUID, values: dict[str, Any]
    ) -> Optional[Subscription]:
        if await self.get_subscription(subscription_id) is None:
            return None
        return await self._store.subscriptions.update(subscription_id, values)

    async def remove_subscriptions(self, **filters: Any) -> int:
        """Delete the caller's subscriptions matching ``filters``."""
        return await self._store.subscriptions.delete_where({**filters, **self._owner_filter()})


class PrivilegedStore(ScopedStore):
    def _check_owner(self, user_id: Optional[uuid.UUID]) -> None:
        return None

    def _owner_filter(self) -> dict[str, Any]:
        return {}

    @property
    def entities(self) -> EntityStore:
        return self._store

    async def all_requests(self, status: Optional[str] = None) -> list[AccessRequest]:
        filters = {"status": status} if status else None
        return await self._store.requests.list_all(filters, order_by=("-requested_at",))

    async def list_profiles(self) -> list[Profile]:
        return await self._store.profiles.list_all(order_by=("email",))


def store_for(context: AccessContext, store: EntityStore) -> ScopedStore:
    """Pick the store view matching the caller's role."""
    if context.is_admin:
        return PrivilegedStore(store, context.user_id)
    return ScopedStore(store, context.user_id)
