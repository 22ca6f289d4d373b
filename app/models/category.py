"""Category model."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Category(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "categories"

    name: str = Field(nullable=False, unique=True)
    description: Optional[str] = None
    display_order: int = Field(default=0, nullable=False)
