"""
Direct grant administration: grant, revoke, and replace an item's grantees.

All writes here are idempotent; a duplicate of an effective grant or a missing
revoke target is a successful no-op. A lapsed grant is renewed in place.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable, Optional

import structlog

from app.core.errors import NotFoundError
from app.models.base import utcnow
from app.models.user_access import UserAccess
from app.services.entitlements import grant_is_effective
from app.store import EntityStore, PrivilegedStore

log = structlog.get_logger()


async def _require_profile_and_item(
    store: PrivilegedStore, user_ids: Iterable[uuid.UUID], item_id: uuid.UUID
) -> None:
    if await store.get_item(item_id) is None:
        raise NotFoundError("Item not found")
    for user_id in user_ids:
        if await store.entities.profiles.get_by_id(user_id) is None:
            raise NotFoundError("User not found", details={"user_id": str(user_id)})


async def write_grant(
    entities: EntityStore,
    user_id: uuid.UUID,
    item_id: uuid.UUID,
    expires_at: Optional[datetime] = None,
) -> tuple[UserAccess, bool]:
    """Insert a grant, or renew one that has lapsed. Returns (grant, changed).

    Must run inside the caller's unit of work. An effective grant is left as it is.
    """
    grant, created = await entities.grants.insert(
        UserAccess(user_id=user_id, item_id=item_id, expires_at=expires_at)
    )
    if created or grant_is_effective(grant):
        return grant, created
    grant = await entities.grants.update(
        (user_id, item_id), {"expires_at": expires_at, "granted_at": utcnow()}
    )
    log.info("grant.renewed", user_id=str(user_id), item_id=str(item_id))
    return grant, True


async def grant_access(
    store: PrivilegedStore,
    user_id: uuid.UUID,
    item_id: uuid.UUID,
    expires_at: Optional[datetime] = None,
) -> UserAccess:
    await _require_profile_and_item(store, [user_id], item_id)
    async with store.atomic():
        grant, created = await write_grant(store.entities, user_id, item_id, expires_at)
    if created:
        log.info("grant.created", user_id=str(user_id), item_id=str(item_id))
    return grant


async def revoke_access(
    store: PrivilegedStore, user_id: uuid.UUID, item_id: uuid.UUID
) -> bool:
    async with store.atomic():
        removed = await store.entities.grants.delete((user_id, item_id))
    if removed:
        log.info("grant.revoked", user_id=str(user_id), item_id=str(item_id))
    return removed


async def set_item_grantees(
    store: PrivilegedStore, item_id: uuid.UUID, user_ids: Iterable[uuid.UUID]
) -> tuple[list[uuid.UUID], list[uuid.UUID]]:
    """Make ``user_ids`` the exact grantee set of an item. Returns (added, removed)."""
    wanted = list(dict.fromkeys(user_ids))
    await _require_profile_and_item(store, wanted, item_id)

    grants = store.entities.grants
    existing = await grants.list_all({"item_id": item_id})
    current = {g.user_id for g in existing if grant_is_effective(g)}
    to_add = [uid for uid in wanted if uid not in current]
    to_remove = sorted({g.user_id for g in existing} - set(wanted), key=str)

    async with store.atomic():
        for uid in to_add:
            await write_grant(store.entities, uid, item_id)
        if to_remove:
            await grants.delete_where({"item_id": item_id, "user_id": to_remove})

    log.info(
        "grant.grantees_replaced",
        item_id=str(item_id),
        added=len(to_add),
        removed=len(to_remove),
    )
    return to_add, to_remove


async def list_grants(
    store: PrivilegedStore,
    user_id: Optional[uuid.UUID] = None,
    item_id: Optional[uuid.UUID] = None,
) -> list[UserAccess]:
    filters = {}
    if user_id:
        filters["user_id"] = user_id
    if item_id:
        filters["item_id"] = item_id
    return await store.entities.grants.list_all(filters, order_by=("-granted_at",))
