"""
Profile administration endpoints (Admin only).

GET    /api/v1/profiles                 — List profiles
PATCH  /api/v1/profiles/{userId}/role   — Change a profile's role
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from app.core.auth import get_privileged_store
from app.services import users as user_service
from app.store import PrivilegedStore
from accessdesk_shared.schemas.profiles import ProfileListResponse, ProfileRead, RoleUpdate

router = APIRouter()


@router.get("", response_model=ProfileListResponse, tags=["Profiles"])
async def list_profiles(store: PrivilegedStore = Depends(get_privileged_store)):
    profiles = await user_service.list_profiles(store)
    return ProfileListResponse(
        data=[ProfileRead.model_validate(p, from_attributes=True) for p in profiles]
    )


@router.patch("/{user_id}/role", response_model=ProfileRead, tags=["Profiles"])
async def set_role(
    user_id: uuid.UUID,
    body: RoleUpdate,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    """Promote or demote a profile. Takes effect on that user's next request."""
    profile = await user_service.set_role(store, user_id, body.role)
    return ProfileRead.model_validate(profile, from_attributes=True)
