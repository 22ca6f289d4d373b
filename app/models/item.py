"""Item model: a catalog resource users can be granted."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Item(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "items"

    title: str = Field(nullable=False)
    description: Optional[str] = None
    url: str = Field(nullable=False)
    category_id: uuid.UUID = Field(foreign_key="categories.id", nullable=False, index=True)
    status: str = Field(nullable=False, default="active")  # active | coming_soon | archived
    display_order: int = Field(default=0, nullable=False)
