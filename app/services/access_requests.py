"""
Access request lifecycle.

    pending ──approve──▶ approved
        └────deny─────▶ denied

Resolved states are terminal. Approval writes the grant and the status change
in one unit of work, so a reader never sees one without the other. The pending
guard is part of the status UPDATE, so of two concurrent resolutions only one
matches a row.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog

from app.core.context import AccessContext
from app.core.errors import (
    AuthenticationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
)
from app.models.access_request import AccessRequest
from app.models.base import utcnow
from app.services.grants import write_grant
from app.store import EntityStore, PrivilegedStore, ScopedStore
from accessdesk_shared.schemas.common import REQUEST_TRANSITIONS, RequestStatus

log = structlog.get_logger()


def _check_transition(request: AccessRequest, to_status: RequestStatus) -> None:
    current = RequestStatus(request.status)
    allowed = REQUEST_TRANSITIONS.get(current, [])
    if to_status not in allowed:
        raise InvalidStateError(
            f"Cannot move access request from '{current.value}' to '{to_status.value}'",
            details={"request_id": str(request.id), "status": current.value},
        )


async def get_request_or_404(store: ScopedStore, request_id: uuid.UUID) -> AccessRequest:
    request = await store.get_request(request_id)
    if request is None:
        raise NotFoundError("Access request not found")
    return request


async def submit_request(
    store: ScopedStore,
    context: AccessContext,
    item_id: uuid.UUID,
    message: Optional[str] = None,
) -> AccessRequest:
    """Open a pending request. A second pending request for the same item is refused."""
    if not context.is_authenticated:
        raise AuthenticationError("Sign in to request access")

    if await store.get_item(item_id) is None:
        raise NotFoundError("Item not found")

    pending = await store.requests_for(context.user_id, status=RequestStatus.PENDING.value)
    if any(r.item_id == item_id for r in pending):
        raise _duplicate_pending(item_id)

    try:
        async with store.atomic():
            request = await store.add_request(
                AccessRequest(
                    user_id=context.user_id,
                    item_id=item_id,
                    status=RequestStatus.PENDING.value,
                    request_message=message,
                )
            )
    except ConflictError as exc:
        pending = await store.requests_for(context.user_id, status=RequestStatus.PENDING.value)
        if any(r.item_id == item_id for r in pending):
            raise _duplicate_pending(item_id) from exc
        raise

    log.info(
        "access_request.submitted",
        request_id=str(request.id),
        user_id=str(context.user_id),
        item_id=str(item_id),
    )
    return request


def _duplicate_pending(item_id: uuid.UUID) -> InvalidStateError:
    return InvalidStateError(
        "A pending request for this item already exists",
        details={"item_id": str(item_id)},
    )


async def _resolve(
    entities: EntityStore,
    request: AccessRequest,
    to_status: RequestStatus,
    admin_id: uuid.UUID,
    notes: Optional[str],
) -> None:
    """Move a request out of pending, or raise if another writer got there first.

    Must run inside a unit of work; the status guard is part of the UPDATE.
    """
    matched = await entities.requests.update_where(
        {"id": request.id, "status": RequestStatus.PENDING.value},
        {
            "status": to_status.value,
            "resolved_at": utcnow(),
            "resolved_by": admin_id,
            "admin_notes": notes,
        },
    )
    if matched == 0:
        raise InvalidStateError(
            "Access request was resolved by another writer",
            details={"request_id": str(request.id)},
        )


async def approve_request(
    store: PrivilegedStore,
    request_id: uuid.UUID,
    admin_id: uuid.UUID,
    notes: Optional[str] = None,
) -> AccessRequest:
    request = await get_request_or_404(store, request_id)
    _check_transition(request, RequestStatus.APPROVED)

    entities = store.entities
    async with store.atomic():
        await _resolve(entities, request, RequestStatus.APPROVED, admin_id, notes)
        _, created = await write_grant(entities, request.user_id, request.item_id)
    request = await entities.requests.reload(request_id)

    log.info(
        "access_request.approved",
        request_id=str(request.id),
        user_id=str(request.user_id),
        item_id=str(request.item_id),
        resolved_by=str(admin_id),
        grant_created=created,
    )
    return request


async def deny_request(
    store: PrivilegedStore,
    request_id: uuid.UUID,
    admin_id: uuid.UUID,
    notes: Optional[str] = None,
) -> AccessRequest:
    request = await get_request_or_404(store, request_id)
    _check_transition(request, RequestStatus.DENIED)

    async with store.atomic():
        await _resolve(store.entities, request, RequestStatus.DENIED, admin_id, notes)
    request = await store.entities.requests.reload(request_id)

    log.info(
        "access_request.denied",
        request_id=str(request.id),
        user_id=str(request.user_id),
        item_id=str(request.item_id),
        resolved_by=str(admin_id),
    )
    return request


async def list_requests(
    store: ScopedStore,
    context: AccessContext,
    status: Optional[RequestStatus] = None,
) -> list[AccessRequest]:
    """Admins see every request, members only their own. Newest first."""
    status_value = status.value if status else None
    if isinstance(store, PrivilegedStore):
        return await store.all_requests(status_value)
    if not context.is_authenticated:
        raise AuthenticationError("Authentication required")
    return await store.requests_for(context.user_id, status=status_value)
