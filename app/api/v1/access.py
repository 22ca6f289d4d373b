"""
Access endpoints: the caller's access list, grant administration and the
access-request lifecycle.

GET    /access/me                               — Item ids the caller may open
GET    /access/grants                           — List grants (Admin)
POST   /access/grants                           — Grant access (Admin, idempotent)
DELETE /access/grants/{userId}/{itemId}         — Revoke access (Admin)
PUT    /access/items/{itemId}/grantees          — Replace an item's grantees (Admin)
GET    /access/requests                         — Own requests, or all (Admin)
POST   /access/requests                         — Submit a request
POST   /access/requests/{requestId}/approve     — Approve (Admin)
POST   /access/requests/{requestId}/deny        — Deny (Admin)
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.core.auth import (
    get_access_context,
    get_privileged_store,
    get_store_view,
    require_user,
)
from app.core.context import AccessContext
from app.services import access_requests as request_service
from app.services import grants as grant_service
from app.services.entitlements import resolve_access
from app.store import PrivilegedStore, ScopedStore
from accessdesk_shared.schemas.access import (
    AccessListResponse,
    AccessRequestCreate,
    AccessRequestRead,
    AccessRequestResolve,
    GrantCreate,
    GrantRead,
    ItemGranteesResult,
    ItemGranteesUpdate,
)
from accessdesk_shared.schemas.common import RequestStatus

router = APIRouter()


def _request(row) -> AccessRequestRead:
    return AccessRequestRead.model_validate(row, from_attributes=True)


def _grant(row) -> GrantRead:
    return GrantRead.model_validate(row, from_attributes=True)


@router.get("/me", response_model=AccessListResponse)
async def my_access(
    context: AccessContext = Depends(get_access_context),
    store: ScopedStore = Depends(get_store_view),
):
    """The caller's resolved access list."""
    item_ids = await resolve_access(store, context)
    return AccessListResponse(item_ids=sorted(item_ids, key=str))


# ---------------------------------------------------------------------------
# Grants
# ---------------------------------------------------------------------------


@router.get("/grants", response_model=List[GrantRead])
async def list_grants(
    user_id: Optional[uuid.UUID] = None,
    item_id: Optional[uuid.UUID] = None,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    return [_grant(g) for g in await grant_service.list_grants(store, user_id, item_id)]


@router.post("/grants", response_model=GrantRead, status_code=201)
async def grant_access(
    body: GrantCreate,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    """Grant access. Granting an existing grant returns it unchanged."""
    grant = await grant_service.grant_access(store, body.user_id, body.item_id, body.expires_at)
    return _grant(grant)


@router.delete("/grants/{user_id}/{item_id}", status_code=204)
async def revoke_access(
    user_id: uuid.UUID,
    item_id: uuid.UUID,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    await grant_service.revoke_access(store, user_id, item_id)


@router.put("/items/{item_id}/grantees", response_model=ItemGranteesResult)
async def set_item_grantees(
    item_id: uuid.UUID,
    body: ItemGranteesUpdate,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    added, removed = await grant_service.set_item_grantees(store, item_id, body.user_ids)
    return ItemGranteesResult(item_id=item_id, added=added, removed=removed)


# ---------------------------------------------------------------------------
# Access requests
# ---------------------------------------------------------------------------


@router.get("/requests", response_model=List[AccessRequestRead])
async def list_requests(
    status: Optional[RequestStatus] = None,
    context: AccessContext = Depends(require_user),
    store: ScopedStore = Depends(get_store_view),
):
    """Newest first. Admins see every request."""
    rows = await request_service.list_requests(store, context, status)
    return [_request(r) for r in rows]


@router.post("/requests", response_model=AccessRequestRead, status_code=201)
async def submit_request(
    body: AccessRequestCreate,
    context: AccessContext = Depends(require_user),
    store: ScopedStore = Depends(get_store_view),
):
    request = await request_service.submit_request(
        store, context, body.item_id, body.request_message
    )
    return _request(request)


@router.post("/requests/{request_id}/approve", response_model=AccessRequestRead)
async def approve_request(
    request_id: uuid.UUID,
    body: AccessRequestResolve,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    """Grant access and close the request in one unit of work."""
    request = await request_service.approve_request(
        store, request_id, store.user_id, body.admin_notes
    )
    return _request(request)


@router.post("/requests/{request_id}/deny", response_model=AccessRequestRead)
async def deny_request(
    request_id: uuid.UUID,
    body: AccessRequestResolve,
    store: PrivilegedStore = Depends(get_privileged_store),
):
    request = await request_service.deny_request(
        store, request_id, store.user_id, body.admin_notes
    )
    return _request(request)
