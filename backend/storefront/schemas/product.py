"""Product schemas for API request/response and bulk import."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from storefront.models.product import ProductStatus


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    price: float = Field(..., ge=0)
    compare_at_price: float | None = Field(None, ge=0)
    images: list[str] = []
    tags: list[str] = []
    inventory: int = Field(default=0, ge=0)
    seo_title: str = ""
    seo_description: str = ""
    status: ProductStatus = ProductStatus.ACTIVE
    is_active: bool = True
    is_featured: bool = False


class ProductCreate(ProductBase):
    slug: str | None = Field(None, max_length=255)
    category_ids: list[UUID] = []


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    description: str | None = None
    price: float | None = Field(None, ge=0)
    compare_at_price: float | None = Field(None, ge=0)
    images: list[str] | None = None
    tags: list[str] | None = None
    inventory: int | None = Field(None, ge=0)
    seo_title: str | None = None
    seo_description: str | None = None
    status: ProductStatus | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    category_ids: list[UUID] | None = None


class CategoryRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    categories: list[CategoryRef] = []
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int


ProductSort = Literal["newest", "price_asc", "price_desc"]


# ── Bulk import ──
class ProductImportRow(BaseModel):
    name: str = Field(..., min_length=1)
    slug: str | None = None
    description: str = ""
    price: float = Field(0, ge=0)
    compare_at_price: float | None = None
    category: str = Field("Uncategorized", min_length=1)
    tags: list[str] = []
    inventory: int = 0
    images: list[str] = []
    seo_title: str = ""
    seo_description: str = ""
    status: ProductStatus = ProductStatus.ACTIVE


class BulkImportRequest(BaseModel):
    products: list[ProductImportRow]


class ImportResult(BaseModel):
    action: Literal["created", "updated"]
    id: UUID


class BulkImportResponse(BaseModel):
    count: int
    data: list[ImportResult]


class AutoCategorizeResponse(BaseModel):
    products_updated: int
    assignments_added: int
