"""Category and item schemas shared by the server and frontend codegen."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, AnyUrl, BaseModel, Field, UUID4
from pydantic import ValidationError as PydanticValidationError

from .common import ItemStatus


def _check_absolute_url(value: str) -> str:
    try:
        AnyUrl(value)
    except PydanticValidationError as exc:
        raise ValueError("url must be an absolute URI") from exc
    return value


AbsoluteUrl = Annotated[str, AfterValidator(_check_absolute_url)]


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    display_order: int = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    display_order: Optional[int] = None


class CategoryRead(BaseModel):
    id: UUID4
    name: str
    description: Optional[str] = None
    display_order: int
    created_at: datetime
    updated_at: datetime


class CategoryCount(BaseModel):
    category_id: UUID4
    item_count: int


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

class ItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    url: AbsoluteUrl
    category_id: UUID4
    status: ItemStatus = ItemStatus.ACTIVE
    display_order: int = 0


class ItemUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    url: Optional[AbsoluteUrl] = None
    category_id: Optional[UUID4] = None
    status: Optional[ItemStatus] = None
    display_order: Optional[int] = None


class ItemRead(BaseModel):
    id: UUID4
    title: str
    description: Optional[str] = None
    url: str
    category_id: UUID4
    status: ItemStatus
    display_order: int
    created_at: datetime
    updated_at: datetime


class ItemWithAccess(ItemRead):
    """An item decorated for one caller. Computed per request, never stored."""
    has_access: bool
    is_subscribed: bool = False
