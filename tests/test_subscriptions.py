"""
Tests for subscription tracking.

Covers:
- Exactly-one-target rule (service and request schema)
- Idempotent subscribe, unsubscribe by id or by target
- Unseen-update flag around mark_seen
- Ownership of subscriptions
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.core.context import AccessContext
from app.core.errors import AuthenticationError, NotFoundError, PermissionDeniedError, ValidationError
from app.models.subscription import Subscription
from app.services import subscriptions as subscription_service
from accessdesk_shared.schemas.subscriptions import SubscriptionCreate


@pytest.fixture
async def category(make_category):
    return await make_category(name="Automation")


@pytest.fixture
async def item(make_item, category):
    return await make_item(category, title="Invoice bot")


# ---------------------------------------------------------------------------
# Unit Tests: target validation and freshness
# ---------------------------------------------------------------------------


class TestTargetRule:
    def test_schema_accepts_single_target(self):
        assert SubscriptionCreate(item_id=uuid.uuid4()).category_id is None
        assert SubscriptionCreate(category_id=uuid.uuid4()).item_id is None

    def test_schema_rejects_both_targets(self):
        with pytest.raises(PydanticValidationError):
            SubscriptionCreate(item_id=uuid.uuid4(), category_id=uuid.uuid4())

    def test_schema_rejects_no_target(self):
        with pytest.raises(PydanticValidationError):
            SubscriptionCreate()


class TestHasUnseenUpdate:
    def test_newer_target_is_unseen(self):
        sub = Subscription(user_id=uuid.uuid4(), item_id=uuid.uuid4(), last_seen_update=datetime(2026, 1, 1))
        assert subscription_service.has_unseen_update(sub, datetime(2026, 1, 2))

    def test_equal_timestamp_is_seen(self):
        seen = datetime(2026, 1, 1)
        sub = Subscription(user_id=uuid.uuid4(), item_id=uuid.uuid4(), last_seen_update=seen)
        assert not subscription_service.has_unseen_update(sub, seen)

    def test_missing_target_is_seen(self):
        sub = Subscription(user_id=uuid.uuid4(), item_id=uuid.uuid4())
        assert not subscription_service.has_unseen_update(sub, None)


# ---------------------------------------------------------------------------
# Integration Tests: subscribe / unsubscribe
# ---------------------------------------------------------------------------


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_subscribe_to_item(self, view, member, member_ctx, item):
        sub = await subscription_service.subscribe(view(member_ctx), member_ctx, item_id=item.id)
        assert sub.user_id == member.id
        assert sub.item_id == item.id
        assert sub.category_id is None

    @pytest.mark.asyncio
    async def test_subscribe_twice_yields_one_row(self, store, view, member, member_ctx, item):
        first = await subscription_service.subscribe(view(member_ctx), member_ctx, item_id=item.id)
        second = await subscription_service.subscribe(view(member_ctx), member_ctx, item_id=item.id)

        assert first.id == second.id
        assert await store.subscriptions.count({"user_id": member.id}) == 1

    @pytest.mark.asyncio
    async def test_item_and_category_subscriptions_coexist(
        self, store, view, member, member_ctx, item, category
    ):
        await subscription_service.subscribe(view(member_ctx), member_ctx, item_id=item.id)
        await subscription_service.subscribe(view(member_ctx), member_ctx, category_id=category.id)
        await subscription_service.subscribe(view(member_ctx), member_ctx, category_id=category.id)
        assert await store.subscriptions.count({"user_id": member.id}) == 2

    @pytest.mark.asyncio
    async def test_both_targets_rejected(self, view, member_ctx, item, category):
        with pytest.raises(ValidationError):
            await subscription_service.subscribe(
                view(member_ctx), member_ctx, item_id=item.id, category_id=category.id
            )

    @pytest.mark.asyncio
    async def test_no_target_rejected(self, view, member_ctx):
        with pytest.raises(ValidationError):
            await subscription_service.subscribe(view(member_ctx), member_ctx)

    @pytest.mark.asyncio
    async def test_unknown_target(self, view, member_ctx):
        with pytest.raises(NotFoundError):
            await subscription_service.subscribe(view(member_ctx), member_ctx, item_id=uuid.uuid4())

    @pytest.mark.asyncio
    async def test_anonymous_cannot_subscribe(self, view, item):
        ctx = AccessContext.anonymous()
        with pytest.raises(AuthenticationError):
            await subscription_service.subscribe(view(ctx), ctx, item_id=item.id)


class TestUnsubscribe:
    @pytest.mark.asyncio
    async def test_unsubscribe_by_id(self, store, view, member, member_ctx, item):
        sub = await subscription_service.subscribe(view(member_ctx), member_ctx, item_id=item.id)
        assert await subscription_service.unsubscribe(view(member_ctx), member_ctx, sub.id) is True
        assert await store.subscriptions.count({"user_id": member.id}) == 0

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_an_error(self, view, member_ctx):
        assert await subscription_service.unsubscribe(view(member_ctx), member_ctx, uuid.uuid4()) is False

    @pytest.mark.asyncio
    async def test_unsubscribe_by_target(self, store, view, member, member_ctx, category):
        await subscription_service.subscribe(view(member_ctx), member_ctx, category_id=category.id)
        removed = await subscription_service.unsubscribe_target(
            view(member_ctx), member_ctx, category_id=category.id
        )
        assert removed is True
        assert await store.subscriptions.count({"user_id": member.id}) == 0

    @pytest.mark.asyncio
    async def test_cannot_remove_someone_elses(self, store, view, member_ctx, make_profile, item):
        other = AccessContext.for_profile(await make_profile())
        theirs = await subscription_service.subscribe(view(other), other, item_id=item.id)

        assert await subscription_service.unsubscribe(view(member_ctx), member_ctx, theirs.id) is False
        assert await store.subscriptions.get_by_id(theirs.id) is not None


# ---------------------------------------------------------------------------
# Integration Tests: freshness
# ---------------------------------------------------------------------------


class TestMarkSeen:
    @pytest.mark.asyncio
    async def test_unseen_cycle(self, store, view, member_ctx, item):
        scoped = view(member_ctx)
        sub = await subscription_service.subscribe(scoped, member_ctx, item_id=item.id)

        # Pretend the subscriber last looked long before the item's last change.
        await subscription_service.mark_seen(scoped, member_ctx, sub.id, now=datetime(2000, 1, 1))
        rows = await subscription_service.list_subscriptions(scoped, member_ctx)
        assert rows[0].has_unseen_update is True
        assert rows[0].target_title == "Invoice bot"

        await subscription_service.mark_seen(scoped, member_ctx, sub.id)
        rows = await subscription_service.list_subscriptions(scoped, member_ctx)
        assert rows[0].has_unseen_update is False

        # The target changes after the subscriber looked.
        async with store.atomic():
            await store.items.update(item.id, {"description": "v2"})
        await subscription_service.mark_seen(
            scoped, member_ctx, sub.id, now=item.updated_at - timedelta(seconds=1)
        )
        rows = await subscription_service.list_subscriptions(scoped, member_ctx)
        assert rows[0].has_unseen_update is True

    @pytest.mark.asyncio
    async def test_category_subscription_uses_category_name(self, view, member_ctx, category):
        await subscription_service.subscribe(view(member_ctx), member_ctx, category_id=category.id)
        rows = await subscription_service.list_subscriptions(view(member_ctx), member_ctx)
        assert rows[0].target_title == "Automation"

    @pytest.mark.asyncio
    async def test_unknown_subscription(self, view, member_ctx):
        with pytest.raises(NotFoundError):
            await subscription_service.mark_seen(view(member_ctx), member_ctx, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_cannot_mark_someone_elses(self, view, member_ctx, make_profile, item):
        other = AccessContext.for_profile(await make_profile())
        theirs = await subscription_service.subscribe(view(other), other, item_id=item.id)
        with pytest.raises(PermissionDeniedError):
            await subscription_service.mark_seen(view(member_ctx), member_ctx, theirs.id)
