"""Category schemas for API request/response."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Admin form posts "" for "no parent"
ParentId = Annotated[UUID | None, BeforeValidator(_blank_to_none)]
OptionalSlug = Annotated[
    Annotated[str, StringConstraints(max_length=255, pattern=SLUG_PATTERN)] | None,
    BeforeValidator(_blank_to_none),
]


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    image: str | None = Field(None, max_length=500)
    description: str | None = None


class CategoryCreate(CategoryBase):
    slug: OptionalSlug = None
    parent_id: ParentId = None


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    slug: OptionalSlug = None
    image: str | None = None
    description: str | None = None
    parent_id: ParentId = None


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    parent_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class CategoryWithCount(CategoryResponse):
    product_count: int = 0


class CategoryListResponse(BaseModel):
    items: list[CategoryWithCount]
    total: int


class CategoryTreeNode(BaseModel):
    id: UUID
    name: str
    slug: str
    image: str | None = None
    children: list[CategoryTreeNode] = []


class AssignedProductsRequest(BaseModel):
    product_ids: list[UUID]


class AssignedProductsResponse(BaseModel):
    category_id: UUID
    product_ids: list[UUID]


class SyncResponse(BaseModel):
    category_id: UUID
    category_name: str
    removed: int
    added: int
    message: str
