"""
Tests for direct grant administration.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from app.core.errors import NotFoundError
from app.models.base import utcnow
from app.services import grants as grant_service
from app.services.entitlements import resolve_access


@pytest.fixture
async def item(make_category, make_item):
    return await make_item(await make_category())


class TestGrantAndRevoke:
    @pytest.mark.asyncio
    async def test_grant_is_idempotent(self, store, view, admin_ctx, member, item):
        first = await grant_service.grant_access(view(admin_ctx), member.id, item.id)
        second = await grant_service.grant_access(view(admin_ctx), member.id, item.id)

        assert (first.user_id, first.item_id) == (second.user_id, second.item_id)
        assert await store.grants.count({"user_id": member.id, "item_id": item.id}) == 1

    @pytest.mark.asyncio
    async def test_duplicate_of_effective_grant_is_unchanged(self, view, admin_ctx, member, item):
        first = await grant_service.grant_access(view(admin_ctx), member.id, item.id)
        again = await grant_service.grant_access(
            view(admin_ctx), member.id, item.id, expires_at=first.granted_at
        )
        assert again.expires_at is None

    @pytest.mark.asyncio
    async def test_regrant_renews_lapsed_grant(
        self, store, view, admin_ctx, member, member_ctx, item
    ):
        await grant_service.grant_access(
            view(admin_ctx), member.id, item.id, expires_at=utcnow() - timedelta(days=1)
        )
        assert item.id not in await resolve_access(view(member_ctx), member_ctx)

        renewed = await grant_service.grant_access(view(admin_ctx), member.id, item.id)

        assert renewed.expires_at is None
        assert item.id in await resolve_access(view(member_ctx), member_ctx)
        assert await store.grants.count({"user_id": member.id, "item_id": item.id}) == 1

    @pytest.mark.asyncio
    async def test_revoke_removes_access(self, view, admin_ctx, member, member_ctx, item):
        await grant_service.grant_access(view(admin_ctx), member.id, item.id)
        assert await grant_service.revoke_access(view(admin_ctx), member.id, item.id) is True
        assert await resolve_access(view(member_ctx), member_ctx) == set()

    @pytest.mark.asyncio
    async def test_revoking_missing_grant_is_a_noop(self, view, admin_ctx, member, item):
        assert await grant_service.revoke_access(view(admin_ctx), member.id, item.id) is False

    @pytest.mark.asyncio
    async def test_unknown_user(self, view, admin_ctx, item):
        with pytest.raises(NotFoundError):
            await grant_service.grant_access(view(admin_ctx), uuid.uuid4(), item.id)

    @pytest.mark.asyncio
    async def test_unknown_item(self, view, admin_ctx, member):
        with pytest.raises(NotFoundError):
            await grant_service.grant_access(view(admin_ctx), member.id, uuid.uuid4())


class TestItemGrantees:
    @pytest.mark.asyncio
    async def test_replace_grantee_set(self, store, view, admin_ctx, make_profile, item):
        keep, drop, new = await make_profile(), await make_profile(), await make_profile()
        await grant_service.grant_access(view(admin_ctx), keep.id, item.id)
        await grant_service.grant_access(view(admin_ctx), drop.id, item.id)

        added, removed = await grant_service.set_item_grantees(
            view(admin_ctx), item.id, [keep.id, new.id]
        )

        assert added == [new.id]
        assert removed == [drop.id]
        holders = {g.user_id for g in await store.grants.list_all({"item_id": item.id})}
        assert holders == {keep.id, new.id}

    @pytest.mark.asyncio
    async def test_empty_set_clears_item(self, store, view, admin_ctx, member, item):
        await grant_service.grant_access(view(admin_ctx), member.id, item.id)
        added, removed = await grant_service.set_item_grantees(view(admin_ctx), item.id, [])
        assert added == []
        assert removed == [member.id]
        assert await store.grants.count({"item_id": item.id}) == 0

    @pytest.mark.asyncio
    async def test_lapsed_grantee_is_re_added(self, view, admin_ctx, member, member_ctx, item):
        await grant_service.grant_access(
            view(admin_ctx), member.id, item.id, expires_at=utcnow() - timedelta(hours=1)
        )

        added, removed = await grant_service.set_item_grantees(
            view(admin_ctx), item.id, [member.id]
        )

        assert added == [member.id]
        assert removed == []
        assert item.id in await resolve_access(view(member_ctx), member_ctx)

    @pytest.mark.asyncio
    async def test_list_grants_filters(self, view, admin_ctx, member, make_profile, item):
        other = await make_profile()
        await grant_service.grant_access(view(admin_ctx), member.id, item.id)
        await grant_service.grant_access(view(admin_ctx), other.id, item.id)

        rows = await grant_service.list_grants(view(admin_ctx), user_id=member.id)
        assert [(g.user_id, g.item_id) for g in rows] == [(member.id, item.id)]
        assert len(await grant_service.list_grants(view(admin_ctx), item_id=item.id)) == 2
