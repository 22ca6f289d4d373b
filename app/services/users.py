"""
Profile service: local registration, credential checks and role management.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog

from app.core.auth import hash_password, verify_password
from app.core.errors import AuthenticationError, ConflictError, NotFoundError
from app.models.profile import Profile
from app.store import EntityStore, PrivilegedStore
from accessdesk_shared.schemas.common import Role
from accessdesk_shared.schemas.profiles import RegisterRequest

log = structlog.get_logger()


async def register_profile(store: EntityStore, req: RegisterRequest) -> Profile:
    """Create a member profile. New profiles are never admins."""
    if await store.profiles.first({"email": req.email}) is not None:
        raise ConflictError("Email already registered")

    try:
        async with store.atomic():
            profile, _ = await store.profiles.insert(
                Profile(
                    email=req.email,
                    full_name=req.full_name,
                    role=Role.USER.value,
                    password_hash=hash_password(req.password),
                )
            )
    except ConflictError as exc:
        raise ConflictError("Email already registered") from exc
    log.info("profile.registered", user_id=str(profile.id))
    return profile


async def authenticate(store: EntityStore, email: str, password: str) -> Profile:
    profile = await store.profiles.first({"email": email})
    if not profile or not profile.password_hash:
        raise AuthenticationError("Invalid email or password")
    if not verify_password(password, profile.password_hash):
        raise AuthenticationError("Invalid email or password")
    return profile


async def list_profiles(store: PrivilegedStore) -> list[Profile]:
    return await store.list_profiles()


async def get_profile(store: EntityStore, user_id: uuid.UUID) -> Optional[Profile]:
    return await store.profiles.get_by_id(user_id)


async def set_role(store: PrivilegedStore, user_id: uuid.UUID, role: Role) -> Profile:
    """Change a profile's single role."""
    if await store.entities.profiles.get_by_id(user_id) is None:
        raise NotFoundError("User not found")
    async with store.atomic():
        profile = await store.entities.profiles.update(user_id, {"role": role.value})
    log.info("profile.role_changed", user_id=str(user_id), role=role.value)
    return profile
