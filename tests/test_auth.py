"""
Tests for authentication and the caller context.

Covers:
- Password hashing
- JWT creation, decoding, expiry
- AccessContext construction and role checks
- Store view selection by role
- Registration and credential checks
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import jwt
import pytest

from app.core.auth import create_jwt, decode_jwt, hash_password, verify_password
from app.core.context import AccessContext
from app.core.errors import AuthenticationError, ConflictError, PermissionDeniedError
from app.services import users as user_service
from app.store import PrivilegedStore, ScopedStore
from accessdesk_shared.schemas.common import Role
from accessdesk_shared.schemas.profiles import RegisterRequest


# ---------------------------------------------------------------------------
# Unit Tests: Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHashing:
    def test_hash_and_verify(self):
        password = "MySecureP@ssw0rd!"
        hashed = hash_password(password)
        assert hashed != password
        assert verify_password(password, hashed)

    def test_wrong_password_fails(self):
        hashed = hash_password("correct-password")
        assert not verify_password("wrong-password", hashed)

    def test_different_hashes_for_same_password(self):
        """bcrypt uses random salt, so hashes differ."""
        h1 = hash_password("same")
        h2 = hash_password("same")
        assert h1 != h2


# ---------------------------------------------------------------------------
# Unit Tests: JWT
# ---------------------------------------------------------------------------

class TestJWT:
    def test_roundtrip_carries_subject_only(self):
        uid = uuid.uuid4()
        token, jti = create_jwt(uid)
        payload = decode_jwt(token)
        assert payload["sub"] == str(uid)
        assert payload["jti"] == jti
        assert "role" not in payload

    def test_expired_token_rejected(self):
        token, _ = create_jwt(uuid.uuid4(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_jwt(token)

    def test_tampered_token_rejected(self):
        token, _ = create_jwt(uuid.uuid4())
        with pytest.raises(jwt.PyJWTError):
            decode_jwt(token[:-2] + ("AA" if token[-2:] != "AA" else "BB"))


# ---------------------------------------------------------------------------
# Unit Tests: AccessContext and store views
# ---------------------------------------------------------------------------

class TestAccessContext:
    def test_anonymous(self):
        ctx = AccessContext.anonymous()
        assert not ctx.is_authenticated
        assert not ctx.is_admin

    def test_member(self):
        ctx = AccessContext(user_id=uuid.uuid4(), role=Role.USER)
        assert ctx.is_authenticated
        assert not ctx.is_admin

    def test_admin(self):
        ctx = AccessContext(user_id=uuid.uuid4(), role=Role.ADMIN)
        assert ctx.is_admin

    def test_role_without_identity_is_not_admin(self):
        assert not AccessContext(role=Role.ADMIN).is_admin


class TestStoreViews:
    def test_admin_gets_privileged_view(self, view, admin_ctx):
        assert isinstance(view(admin_ctx), PrivilegedStore)

    def test_member_gets_scoped_view(self, view, member_ctx):
        scoped = view(member_ctx)
        assert isinstance(scoped, ScopedStore)
        assert not isinstance(scoped, PrivilegedStore)

    @pytest.mark.asyncio
    async def test_scoped_view_refuses_foreign_grants(self, view, member_ctx, admin):
        with pytest.raises(PermissionDeniedError):
            await view(member_ctx).grants_for(admin.id)

    @pytest.mark.asyncio
    async def test_anonymous_view_refuses_owned_reads(self, view, member):
        with pytest.raises(AuthenticationError):
            await view(AccessContext.anonymous()).subscriptions_for(member.id)


# ---------------------------------------------------------------------------
# Integration Tests: registration and login
# ---------------------------------------------------------------------------

class TestRegistration:
    @pytest.mark.asyncio
    async def test_register_creates_member(self, store):
        profile = await user_service.register_profile(
            store, RegisterRequest(email="new@example.com", password="password123")
        )
        assert profile.role == Role.USER.value
        assert profile.password_hash != "password123"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, store):
        req = RegisterRequest(email="dup@example.com", password="password123")
        await user_service.register_profile(store, req)
        with pytest.raises(ConflictError):
            await user_service.register_profile(store, req)

    @pytest.mark.asyncio
    async def test_duplicate_email_past_the_lookup_is_refused(self, store):
        await user_service.register_profile(
            store, RegisterRequest(email="race@example.com", password="password123")
        )
        # A second registration whose lookup ran before the first insert committed.
        with patch.object(store.profiles, "first", AsyncMock(return_value=None)):
            with pytest.raises(ConflictError):
                await user_service.register_profile(
                    store, RegisterRequest(email="race@example.com", password="other-password")
                )
        assert await store.profiles.count({"email": "race@example.com"}) == 1

    @pytest.mark.asyncio
    async def test_authenticate(self, store):
        req = RegisterRequest(email="login@example.com", password="password123")
        created = await user_service.register_profile(store, req)
        profile = await user_service.authenticate(store, "login@example.com", "password123")
        assert profile.id == created.id

    @pytest.mark.asyncio
    async def test_authenticate_wrong_password(self, store):
        await user_service.register_profile(
            store, RegisterRequest(email="x@example.com", password="password123")
        )
        with pytest.raises(AuthenticationError):
            await user_service.authenticate(store, "x@example.com", "nope-nope")

    @pytest.mark.asyncio
    async def test_set_role_takes_effect_on_next_context(self, store, view, admin_ctx, member):
        await user_service.set_role(view(admin_ctx), member.id, Role.ADMIN)
        reloaded = await store.profiles.get_by_id(member.id)
        assert AccessContext.for_profile(reloaded).is_admin
