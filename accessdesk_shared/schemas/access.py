"""Grant and access-request schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4

from .common import RequestStatus


# ---------------------------------------------------------------------------
# Grants
# ---------------------------------------------------------------------------

class GrantCreate(BaseModel):
    user_id: UUID4
    item_id: UUID4
    expires_at: Optional[datetime] = None


class GrantRead(BaseModel):
    user_id: UUID4
    item_id: UUID4
    granted_at: datetime
    expires_at: Optional[datetime] = None


class ItemGranteesUpdate(BaseModel):
    """Replace the full set of users holding a grant on one item."""
    user_ids: List[UUID4] = Field(default_factory=list)


class ItemGranteesResult(BaseModel):
    item_id: UUID4
    added: List[UUID4]
    removed: List[UUID4]


class AccessListResponse(BaseModel):
    item_ids: List[UUID4]


# ---------------------------------------------------------------------------
# Access requests
# ---------------------------------------------------------------------------

class AccessRequestCreate(BaseModel):
    item_id: UUID4
    request_message: Optional[str] = Field(default=None, max_length=2000)


class AccessRequestResolve(BaseModel):
    admin_notes: Optional[str] = Field(default=None, max_length=2000)


class AccessRequestRead(BaseModel):
    id: UUID4
    user_id: UUID4
    item_id: UUID4
    status: RequestStatus
    request_message: Optional[str] = None
    admin_notes: Optional[str] = None
    requested_at: datetime
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[UUID4] = None
